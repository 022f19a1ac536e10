from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Optional


class _Call:
    def __init__(self) -> None:
        self.done = threading.Event()
        self.result: Any = None
        self.error: Optional[BaseException] = None


class SingleFlight:
    """
    Collapse concurrent calls that share a key into one execution.

    The first caller for a key runs `fn`; callers arriving while it is in
    flight block and receive the same result, or the same exception.
    Once the leader finishes the key is forgotten, so later callers run again.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: Dict[str, _Call] = {}

    def do(self, key: str, fn: Callable[[], Any]) -> Any:
        with self._lock:
            call = self._calls.get(key)
            leader = call is None
            if leader:
                call = _Call()
                self._calls[key] = call

        if not leader:
            call.done.wait()
            if call.error is not None:
                raise call.error
            return call.result

        try:
            call.result = fn()
            return call.result
        except BaseException as e:
            call.error = e
            raise
        finally:
            with self._lock:
                self._calls.pop(key, None)
            call.done.set()

    def in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._calls
