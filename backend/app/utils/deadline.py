import logging
import time

from .error_handlers import DeadlineExceededError

logger = logging.getLogger(__name__)


def deadline_after(seconds: float) -> float:
    """Monotonic deadline `seconds` from now."""
    return time.monotonic() + seconds


def remaining(deadline: float | None) -> float | None:
    """Seconds left before the deadline (never negative), or None when unbounded."""
    if deadline is None:
        return None
    return max(deadline - time.monotonic(), 0.0)


def check_deadline(deadline: float | None, step: str) -> None:
    if deadline is not None and time.monotonic() >= deadline:
        logger.warning(f"Deadline exceeded at step: {step}")
        raise DeadlineExceededError(details={"step": step})
