from __future__ import annotations


class LoggerError(Exception):
    pass


class InvalidMessageType(LoggerError):
    def __init__(self, msg_type: object) -> None:
        super().__init__(f"invalid message type: {msg_type!r}")
        self.msg_type = msg_type


class InvalidConfig(LoggerError, ValueError):
    pass


class BufferTruncated(LoggerError):
    """Rendered text did not fit the text buffer; ``text`` holds the clipped result."""

    def __init__(self, text: str, wanted: int) -> None:
        super().__init__(f"text truncated from {wanted} to {len(text)} chars")
        self.text = text
        self.wanted = wanted


class ResourceInitFailed(LoggerError, RuntimeError):
    pass
