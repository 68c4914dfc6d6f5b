from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from .config import Option, OptionKind
from .errors import InvalidConfig
from .histogram import LatencyHistogram
from .messages import Message, Priority, TextMessage, message_prefix

if TYPE_CHECKING:
    from .logger import Logger

# 1024 buckets covering 0.001 ms to 100 s.
OPER_LOG_GRANULARITY = 1024
OPER_LOG_MIN_VALUE = 1e-3
OPER_LOG_MAX_VALUE = 1e5


class Handler:
    """Base for message handlers.

    A handler may define any of ``init(logger)``, ``process(message)`` and
    ``done()``; the logger skips the ones that are missing. ``options`` are
    registered with the logger's option set when the handler is added.
    """

    options: tuple[Option, ...] = ()

    @property
    def name(self) -> str:
        return type(self).__name__


class TextHandler(Handler):
    options = (
        Option(
            "verbosity",
            "verbosity level {5 - debug, 0 - only critical messages}",
            "3",
            OptionKind.INT,
        ),
    )

    def __init__(self) -> None:
        self._logger: Logger | None = None
        self._lock = threading.Lock()
        self._last_text: str | None = None
        self._repeat_count = 0

    def init(self, logger: Logger) -> None:
        try:
            verbosity = logger.options.get_int("verbosity")
        except ValueError:
            raw = logger.options.raw("verbosity")
            logger.log_text(Priority.FATAL, "Invalid value for --verbosity: %s", raw)
            raise InvalidConfig(f"invalid verbosity: {raw!r}") from None
        if verbosity < Priority.FATAL or verbosity > Priority.DEBUG:
            logger.log_text(Priority.FATAL, "Invalid value for --verbosity: %d", verbosity)
            raise InvalidConfig(f"verbosity out of range: {verbosity}")
        logger.verbosity = verbosity
        with self._lock:
            self._last_text = None
            self._repeat_count = 0
        self._logger = logger

    @property
    def repeat_count(self) -> int:
        with self._lock:
            return self._repeat_count

    def process(self, message: Message) -> None:
        logger = self._logger
        if logger is None:
            raise RuntimeError("text handler used before init")
        payload = message.payload
        if not isinstance(payload, TextMessage):
            raise TypeError(f"text handler got {type(payload).__name__}")
        if payload.priority > logger.verbosity:
            return

        stream = logger.stream
        if not payload.allow_duplicates:
            with self._lock:
                if payload.text == self._last_text:
                    self._repeat_count += 1
                    return
                if self._repeat_count > 0:
                    print(
                        f"(last message repeated {self._repeat_count} times)",
                        file=stream,
                        flush=True,
                    )
                self._repeat_count = 0
                self._last_text = payload.text

        print(
            message_prefix(payload.priority) + payload.text,
            end="",
            file=stream,
            flush=True,
        )


class OperationHandler(Handler):
    options = (
        Option(
            "percentile",
            "list of percentiles to calculate in latency statistics (0-100). "
            "Use an empty list to disable percentile calculations",
            "95",
            OptionKind.LIST,
        ),
        Option("histogram", "print latency histogram in report", "off", OptionKind.BOOL),
    )

    def __init__(self, histogram: LatencyHistogram | None = None) -> None:
        self.histogram = histogram if histogram is not None else LatencyHistogram()
        self.percentiles: tuple[float, ...] = ()
        self.report_histogram = False

    def init(self, logger: Logger) -> None:
        parsed: list[float] = []
        for raw in logger.options.get_list("percentile"):
            try:
                value = float(raw)
            except ValueError:
                logger.log_text(Priority.FATAL, "Invalid value for --percentile: %s", raw)
                raise InvalidConfig(f"invalid percentile: {raw!r}") from None
            if not 0 <= value <= 100:
                logger.log_text(Priority.FATAL, "Invalid value for --percentile: %f", value)
                raise InvalidConfig(f"percentile out of range: {value}")
            parsed.append(value)

        try:
            report_histogram = logger.options.get_flag("histogram")
        except ValueError:
            raw = logger.options.raw("histogram")
            logger.log_text(Priority.FATAL, "Invalid value for --histogram: %s", raw)
            raise InvalidConfig(f"invalid histogram flag: {raw!r}") from None
        if report_histogram and not parsed:
            logger.log_text(
                Priority.FATAL, "--histogram cannot be used with --percentile=NULL"
            )
            raise InvalidConfig("histogram requested with an empty percentile list")

        self.percentiles = tuple(parsed)
        self.report_histogram = report_histogram
        self.histogram.init(OPER_LOG_GRANULARITY, OPER_LOG_MIN_VALUE, OPER_LOG_MAX_VALUE)

    def done(self) -> None:
        self.histogram.done()
        self.percentiles = ()
