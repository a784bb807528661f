"""
Controlled execution of inspected code.

Serializers, forms and model members are sampled by calling into user code.
Those calls go through bounded_call so a hanging member cannot stall a run,
and serializers receive a NullInstance instead of a real model object.
"""

import logging
import signal
import threading
from types import SimpleNamespace
from typing import Any, Callable

from .exceptions import ExecutionTimeoutError

logger = logging.getLogger(__name__)


class NullInstance:
    """
    Neutral stand-in for a model instance.

    Every attribute reads as None and the object itself is falsy, so field
    lookups made by a serializer resolve to null values instead of failing.
    """

    pk = None
    _state = SimpleNamespace(db=None, adding=True)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        return None

    def serializable_value(self, field_name: str) -> None:
        return None

    def __bool__(self) -> bool:
        return False

    def __len__(self) -> int:
        return 0

    def __iter__(self):
        return iter(())

    def __repr__(self) -> str:
        return "<NullInstance>"


def _can_use_alarm() -> bool:
    return hasattr(signal, "setitimer") and threading.current_thread() is threading.main_thread()


def bounded_call(func: Callable[..., Any], timeout: float, *args: Any, **kwargs: Any) -> Any:
    """
    Call ``func`` and raise ExecutionTimeoutError if it runs longer than ``timeout``.

    The bound uses SIGALRM, so it only applies on POSIX in the main thread.
    Elsewhere, or with a timeout of 0, the call runs unbounded.

    Args:
        func: Callable invoking inspected code
        timeout: Seconds allowed for the call

    Returns:
        Whatever ``func`` returns
    """
    if not timeout or not _can_use_alarm():
        return func(*args, **kwargs)

    label = getattr(func, "__qualname__", repr(func))

    def _on_timeout(signum, frame):
        raise ExecutionTimeoutError(f"Call to {label} exceeded {timeout}s", timeout=timeout)

    previous_handler = signal.signal(signal.SIGALRM, _on_timeout)
    signal.setitimer(signal.ITIMER_REAL, timeout)
    try:
        return func(*args, **kwargs)
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0)
        signal.signal(signal.SIGALRM, previous_handler)
