from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class MessageType(IntEnum):
    MIN = 0
    TEXT = 1
    OPERATION = 2
    MAX = 3


class Priority(IntEnum):
    FATAL = 0
    ALERT = 1
    WARNING = 2
    NOTICE = 3
    INFO = 4
    DEBUG = 5


class OperationKind(IntEnum):
    START = 0
    STOP = 1


_PREFIXES = {
    Priority.FATAL: "FATAL: ",
    Priority.ALERT: "ALERT: ",
    Priority.WARNING: "WARNING: ",
    Priority.DEBUG: "DEBUG: ",
}


def message_prefix(priority: int) -> str:
    return _PREFIXES.get(priority, "")


def is_valid_type(msg_type: int) -> bool:
    return MessageType.MIN < msg_type < MessageType.MAX


@dataclass(frozen=True, slots=True)
class TextMessage:
    priority: Priority
    text: str
    allow_duplicates: bool = False


@dataclass(frozen=True, slots=True)
class OperationMessage:
    kind: OperationKind
    thread_id: int = 0
    value: float = 0.0


@dataclass(frozen=True, slots=True)
class Message:
    type: int
    payload: TextMessage | OperationMessage

    @classmethod
    def text(
        cls, priority: Priority, text: str, *, allow_duplicates: bool = False
    ) -> "Message":
        return cls(
            MessageType.TEXT,
            TextMessage(priority=priority, text=text, allow_duplicates=allow_duplicates),
        )

    @classmethod
    def operation(
        cls, kind: OperationKind, *, thread_id: int = 0, value: float = 0.0
    ) -> "Message":
        return cls(
            MessageType.OPERATION,
            OperationMessage(kind=kind, thread_id=thread_id, value=value),
        )
