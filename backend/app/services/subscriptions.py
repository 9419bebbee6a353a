"""
In-process live snapshots for store collections.

A subscriber receives the full current snapshot on subscribe and again after
every write to its topic. Snapshots are never deltas: subscribers replace
their working set on each delivery.
"""

import itertools
from collections import defaultdict
from typing import Any, Callable, Dict, Hashable, List

from app.core.logging_config import get_logger

logger = get_logger(__name__)

Snapshot = List[Any]
Loader = Callable[[], Snapshot]
Callback = Callable[[Snapshot], None]
Unsubscribe = Callable[[], None]


class SnapshotHub:
    def __init__(self):
        self._subscribers: Dict[Hashable, Dict[int, Callback]] = defaultdict(dict)
        self._loaders: Dict[Hashable, Loader] = {}
        self._ids = itertools.count(1)

    def subscribe(self, topic: Hashable, loader: Loader, callback: Callback) -> Unsubscribe:
        """Register ``callback`` for ``topic`` and deliver the current snapshot to it."""
        subscription_id = next(self._ids)
        self._subscribers[topic][subscription_id] = callback
        self._loaders[topic] = loader

        self._notify(topic, callback, self._load(topic, loader))

        def unsubscribe() -> None:
            subscribers = self._subscribers.get(topic)
            if subscribers is None:
                return
            subscribers.pop(subscription_id, None)
            if not subscribers:
                del self._subscribers[topic]
                self._loaders.pop(topic, None)

        return unsubscribe

    def publish(self, topic: Hashable) -> None:
        """Reload ``topic`` and push the snapshot to every subscriber."""
        subscribers = self._subscribers.get(topic)
        if not subscribers:
            return
        snapshot = self._load(topic, self._loaders[topic])
        for callback in list(subscribers.values()):
            self._notify(topic, callback, snapshot)

    def subscriber_count(self, topic: Hashable) -> int:
        return len(self._subscribers.get(topic, ()))

    def close(self) -> None:
        self._subscribers.clear()
        self._loaders.clear()

    def _load(self, topic: Hashable, loader: Loader) -> Snapshot:
        try:
            return list(loader())
        except Exception as e:
            logger.error("Error loading snapshot: %s", e, extra={"topic": str(topic)})
            return []

    def _notify(self, topic: Hashable, callback: Callback, snapshot: Snapshot) -> None:
        try:
            callback(list(snapshot))
        except Exception:
            logger.exception("Snapshot subscriber failed", extra={"topic": str(topic)})
