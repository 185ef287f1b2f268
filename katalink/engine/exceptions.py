"""
Engine Exceptions

Errors raised to callers of the engine session. Transport and engine-side
failures are not raised; they are reported to the user and end the session.
"""


class EngineError(Exception):
    """Base exception for engine session errors"""

    def __init__(self, message: str, operation: str = None):
        self.message = message
        self.operation = operation
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.operation:
            return f"{self.operation}(): {self.message}"
        return self.message


class EngineMisuseError(EngineError, TypeError):
    """Invalid argument passed to the session (programmer error)"""
    pass


class EngineReuseError(EngineError):
    """setup() called on a session that already connected or has quit"""

    def __init__(self, message: str = "engine object should not be reused", **kwargs):
        kwargs.setdefault("operation", "setup")
        super().__init__(message, **kwargs)
