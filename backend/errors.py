"""
Structured error reporting.

Errors carry the operation that failed and a few key/value pairs of context.
report() is the diagnostic sink: it logs and never raises, so callers can
report and move on.
"""
from typing import Callable, Optional
from logger import logger

Reporter = Callable[[BaseException], None]

class AnalyticsError(Exception):
    def __init__(self, message: str, op: Optional[str] = None, **context):
        super().__init__(message)
        self.message = message
        self.op = op
        self.context = {key: str(value) for key, value in context.items()}

    def with_op(self, op: str) -> "AnalyticsError":
        self.op = op
        return self

    def with_context(self, key: str, value) -> "AnalyticsError":
        self.context[key] = str(value)
        return self

    def __str__(self):
        parts = []
        if self.op:
            parts.append(f"{self.op}:")
        parts.append(self.message)
        parts.extend(f"{key}={value}" for key, value in self.context.items())
        return " ".join(parts)

def wrap(exc: BaseException, op: Optional[str] = None) -> AnalyticsError:
    """Wrap any exception as an AnalyticsError, keeping it as the cause."""
    if isinstance(exc, AnalyticsError):
        if op:
            exc.with_op(op)
        return exc

    wrapped = AnalyticsError(str(exc) or type(exc).__name__, op=op)
    wrapped.__cause__ = exc
    return wrapped

def report(error: BaseException) -> None:
    try:
        logger.error(str(wrap(error)))
    except Exception as e:
        logger.debug(f"Unable to report error: {str(e)}")
