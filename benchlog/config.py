from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, TextIO

ENV_PREFIX = "BENCHLOG_"


class OptionKind(Enum):
    INT = "int"
    LIST = "list"
    BOOL = "bool"
    STRING = "string"


def _parse_bool(value: str) -> bool:
    val = str(value).strip().lower()
    if val in {"1", "true", "yes", "y", "on"}:
        return True
    if val in {"0", "false", "no", "n", "off"}:
        return False
    raise ValueError(f"invalid bool: {value}")


def _parse_number(value: str, target_type: type) -> Any:
    if target_type is int:
        return int(value)
    if target_type is float:
        return float(value)
    return value


def _parse_list(value: str) -> list[str]:
    return [item.strip() for item in str(value).split(",") if item.strip()]


@dataclass(frozen=True, slots=True)
class Option:
    name: str
    description: str
    default: str
    kind: OptionKind

    @property
    def flag(self) -> str:
        return "--" + self.name.replace("_", "-")


@dataclass
class OptionSet:
    """Declared handler options and their current raw values.

    Values are kept as strings, the way they arrive from the command line or
    the environment, and parsed on read.
    """

    _options: dict[str, Option] = field(default_factory=dict)
    _values: dict[str, str] = field(default_factory=dict)

    def register(self, options: Iterable[Option]) -> None:
        for option in options:
            if option.name in self._options:
                raise ValueError(f"option already registered: {option.name}")
            self._options[option.name] = option

    def declared(self) -> tuple[Option, ...]:
        return tuple(self._options.values())

    def _option(self, name: str) -> Option:
        try:
            return self._options[name]
        except KeyError:
            raise KeyError(f"unknown option: {name}") from None

    def set_value(self, name: str, raw: Any) -> None:
        option = self._option(name)
        if option.kind is OptionKind.BOOL and isinstance(raw, bool):
            raw = "on" if raw else "off"
        elif option.kind is OptionKind.LIST and isinstance(raw, (list, tuple)):
            raw = ",".join(str(item) for item in raw)
        self._values[name] = str(raw)

    def raw(self, name: str) -> str:
        option = self._option(name)
        return self._values.get(name, option.default)

    def get_int(self, name: str) -> int:
        return _parse_number(self.raw(name).strip(), int)

    def get_list(self, name: str) -> list[str]:
        return _parse_list(self.raw(name))

    def get_flag(self, name: str) -> bool:
        return _parse_bool(self.raw(name))

    def apply_overrides(self, overrides: Mapping[str, Any]) -> "OptionSet":
        for name in self._options:
            if name in overrides and overrides[name] is not None:
                self.set_value(name, overrides[name])
        return self

    def apply_env(self, env: Mapping[str, str]) -> "OptionSet":
        for name in self._options:
            env_key = ENV_PREFIX + name.upper()
            if env_key in env:
                self.set_value(name, env[env_key])
        return self

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        for option in self._options.values():
            help_text = f"{option.description} [{option.default}]"
            if option.kind is OptionKind.BOOL:
                group = parser.add_mutually_exclusive_group()
                group.add_argument(
                    option.flag, dest=option.name, action="store_true", help=help_text
                )
                group.add_argument(
                    "--no-" + option.flag[2:], dest=option.name, action="store_false"
                )
                parser.set_defaults(**{option.name: None})
            else:
                parser.add_argument(
                    option.flag, dest=option.name, default=None, help=help_text
                )

    def cli_overrides(self, ns: argparse.Namespace) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for name in self._options:
            value = getattr(ns, name, None)
            if value is not None:
                overrides[name] = value
        return overrides

    def print_help(self, file: TextIO | None = None) -> None:
        out = file if file is not None else sys.stdout
        for option in self._options.values():
            left = f"  {option.flag}=N"
            if option.kind is OptionKind.BOOL:
                left = f"  {option.flag}[=on|off]"
            elif option.kind is OptionKind.LIST:
                left = f"  {option.flag}=[LIST,...]"
            elif option.kind is OptionKind.STRING:
                left = f"  {option.flag}=STRING"
            print(f"{left:<35} {option.description} [{option.default}]", file=out)
