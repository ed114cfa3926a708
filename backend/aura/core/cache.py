"""Process-lifetime cache owned by the application context"""
import threading
from typing import Any, Callable, Dict, Hashable, Optional


class ProcessCache:
    """
    Compute-once cache for values that never change during the process lifetime
    (for example, which Stripe product a price belongs to).

    One instance is created when the application starts and handed to the
    components that need it; nothing reaches it through module globals.
    """

    def __init__(self):
        self._values: Dict[Hashable, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable, default=None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._values[key] = value

    def get_or_compute(self, key: Hashable, factory: Callable[[], Any]) -> Any:
        """Return the cached value, computing and storing it on first use.

        The factory runs outside the lock; if it raises, nothing is cached.
        """
        with self._lock:
            if key in self._values:
                return self._values[key]
        value = factory()
        with self._lock:
            return self._values.setdefault(key, value)

    def invalidate(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            return self._values.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._values.clear()

    def __len__(self):
        with self._lock:
            return len(self._values)

    def __contains__(self, key):
        with self._lock:
            return key in self._values
