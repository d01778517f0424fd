"""Wall-clock time-out for a whole check run."""
from __future__ import annotations

import os
import signal
import threading
from typing import Callable, TypeVar

from .errors import CheckTimeout

T = TypeVar("T")


def with_timeout(seconds: int, func: Callable[..., T], *args, **kwargs) -> T:
    """Call ``func`` but raise :class:`CheckTimeout` after ``seconds``.

    ``seconds`` of 0 disables the limit.  On POSIX the main thread is
    interrupted with SIGALRM so runaway regexes are stopped too; elsewhere
    the call runs in a daemon thread that is abandoned on expiry.
    """
    if seconds <= 0:
        return func(*args, **kwargs)

    if os.name == "posix" and threading.current_thread() is threading.main_thread():

        def _expired(signum, frame):
            raise CheckTimeout(f"Plug-in error: time out after {seconds} seconds")

        previous = signal.signal(signal.SIGALRM, _expired)
        signal.alarm(seconds)
        try:
            return func(*args, **kwargs)
        finally:
            signal.alarm(0)
            signal.signal(signal.SIGALRM, previous)

    outcome: dict[str, object] = {}

    def _target() -> None:
        try:
            outcome["value"] = func(*args, **kwargs)
        except BaseException as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=_target, daemon=True)
    worker.start()
    worker.join(seconds)
    if worker.is_alive():
        raise CheckTimeout(f"Plug-in error: time out after {seconds} seconds")
    if "error" in outcome:
        raise outcome["error"]  # type: ignore[misc]
    return outcome["value"]  # type: ignore[return-value]
