"""Handler registry and message dispatch.

A ``Logger`` owns one handler chain per message type. Handlers are added and
initialized from a single thread before any worker starts; after ``init``
``dispatch`` and the ``log_*`` helpers may be called from any thread.
"""

from __future__ import annotations

import sys
from typing import Any, TextIO

from .config import OptionSet
from .errors import BufferTruncated, InvalidMessageType
from .formatting import (
    TEXT_BUFFER_SIZE,
    current_errno,
    errno_suffix,
    render,
    render_line,
    render_timestamped,
)
from .handlers import OperationHandler, TextHandler
from .messages import Message, MessageType, Priority, is_valid_type, message_prefix

DEFAULT_VERBOSITY = int(Priority.NOTICE)


class Logger:
    def __init__(self, options: OptionSet | None = None, stream: TextIO | None = None) -> None:
        self.options = options if options is not None else OptionSet()
        self.verbosity = DEFAULT_VERBOSITY
        self.initialized = False
        self._stream = stream
        self._chains: dict[int, list[Any]] = {
            int(t): [] for t in MessageType if is_valid_type(t)
        }
        self._registered: list[Any] = []

    @property
    def stream(self) -> TextIO:
        # resolved late so redirected stdout (pytest capsys) is honored
        return self._stream if self._stream is not None else sys.stdout

    def handlers(self, msg_type: int) -> tuple[Any, ...]:
        if not is_valid_type(msg_type):
            raise InvalidMessageType(msg_type)
        return tuple(self._chains[int(msg_type)])

    def add_handler(self, msg_type: int, handler: Any) -> None:
        if not is_valid_type(msg_type):
            raise InvalidMessageType(msg_type)
        if any(existing is handler for existing in self._registered):
            raise ValueError(f"handler already registered: {handler!r}")
        options = getattr(handler, "options", ())
        if options:
            self.options.register(options)
        self._chains[int(msg_type)].append(handler)
        self._registered.append(handler)

    def init(self) -> None:
        """Run every handler's ``init`` in registration order.

        The first failure propagates and leaves the logger uninitialized, so
        text keeps going straight to the console.
        """
        self.initialized = False
        for handler in self._registered:
            init = getattr(handler, "init", None)
            if init is not None:
                init(self)
        self.initialized = True

    def done(self) -> None:
        for handler in self._registered:
            done = getattr(handler, "done", None)
            if done is None:
                continue
            try:
                done()
            except Exception as exc:
                _report_handler_error("done", handler, exc)
        self.initialized = False

    def dispatch(self, message: Message) -> None:
        if not is_valid_type(message.type):
            raise InvalidMessageType(message.type)
        for handler in self._chains[int(message.type)]:
            process = getattr(handler, "process", None)
            if process is None:
                continue
            try:
                process(message)
            except Exception as exc:
                _report_handler_error("process", handler, exc)

    def _emit_text(self, priority: Priority, text: str, allow_duplicates: bool) -> None:
        if not self.initialized:
            print(message_prefix(priority) + text, end="", file=self.stream, flush=True)
            return
        self.dispatch(Message.text(priority, text, allow_duplicates=allow_duplicates))

    def log_text(self, priority: Priority, fmt: str, *args: Any) -> None:
        self._emit_text(priority, render_line(fmt, args), False)

    def log_timestamp(self, priority: Priority, seconds: float, fmt: str, *args: Any) -> None:
        """Like ``log_text`` with an elapsed-time prefix; never deduplicated."""
        self._emit_text(priority, render_timestamped(seconds, fmt, args), True)

    def log_errno(
        self,
        priority: Priority,
        fmt: str,
        *args: Any,
        error: BaseException | None = None,
    ) -> None:
        code = current_errno(error)
        try:
            text = render(fmt, args, limit=TEXT_BUFFER_SIZE - 1)
        except BufferTruncated:
            return
        self.log_text(priority, "%s", text + errno_suffix(code))

    def print_help(self, file: TextIO | None = None) -> None:
        out = file if file is not None else sys.stdout
        print("Log options:", file=out)
        self.options.print_help(out)


def _report_handler_error(stage: str, handler: Any, exc: Exception) -> None:
    name = getattr(handler, "name", type(handler).__name__)
    print(f"log handler {name} {stage} failed: {type(exc).__name__}: {exc}", file=sys.stderr)


def register_default_handlers(logger: Logger) -> tuple[TextHandler, OperationHandler]:
    text_handler = TextHandler()
    oper_handler = OperationHandler()
    logger.add_handler(MessageType.TEXT, text_handler)
    logger.add_handler(MessageType.OPERATION, oper_handler)
    return text_handler, oper_handler


def create_logger(
    options: OptionSet | None = None, stream: TextIO | None = None
) -> tuple[Logger, TextHandler, OperationHandler]:
    logger = Logger(options, stream)
    text_handler, oper_handler = register_default_handlers(logger)
    return logger, text_handler, oper_handler
