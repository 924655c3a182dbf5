"""
Alert notifier

Watches the store's change feed and turns count increases into user-facing
notifications:

- alerts: increase in the number of unacknowledged alerts (plays a sound)
- patients / visits: increase in the collection size

One notification per positive delta, no matter how many documents a single
snapshot added. While the store is syncing only backend snapshots are
diffed: a local write is echoed by a snapshot, and diffing both would count
the write twice. The notifier keeps no domain data, only the last counts.
"""
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, Dict, List, Optional

from app.database.backend import ALERTS, PATIENTS, VISITS
from app.database.schemas import Notification
from app.services.store import CollectionChange, PatientStore

logger = logging.getLogger(__name__)

Sink = Callable[[Notification], None]

MESSAGES = {
    ALERTS: ("alert", "warning", "⚠️ नया आपातकालीन अलर्ट!"),
    PATIENTS: ("patient", "success", "✅ नया मरीज जोड़ा गया!"),
    VISITS: ("visit", "success", "🎤 नई रिकॉर्डिंग प्राप्त हुई!"),
}


def _count(change: CollectionChange) -> int:
    if change.kind == ALERTS:
        return sum(1 for alert in change.items if not alert.acknowledged)
    return len(change.items)


class AlertNotifier:
    """
    Diff collection counts and emit one Notification per increase

    Args:
        sinks: Callables invoked with each Notification (sound/toast adapters)
        history_size: How many recent notifications to keep for polling clients
    """
    def __init__(self, sinks: Optional[List[Sink]] = None, history_size: int = 50):
        self._sinks: List[Sink] = list(sinks or [])
        self._history: Deque[Notification] = deque(maxlen=history_size)
        self._counts: Dict[str, int] = {}
        self._unsubscribers: List[Callable[[], None]] = []
        self._store: Optional[PatientStore] = None

    def attach(self, store: PatientStore):
        """
        Prime counts from the store's current state and start watching it

        Anything already loaded does not trigger notifications.
        """
        self._counts = {
            ALERTS: len(store.get_active_alerts()),
            PATIENTS: len(store.list_patients()),
            VISITS: len(store.list_visits()),
        }
        self._store = store
        for kind in (ALERTS, PATIENTS, VISITS):
            self._unsubscribers.append(store.subscribe(kind, self.on_change))

    def detach(self):
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._store = None

    def add_sink(self, sink: Sink):
        self._sinks.append(sink)

    def on_change(self, change: CollectionChange):
        if change.kind not in MESSAGES:
            return
        if change.source == "local" and self._store is not None and self._store.syncing:
            return
        current = _count(change)
        previous = self._counts.get(change.kind, 0)
        self._counts[change.kind] = current
        delta = current - previous
        if delta > 0:
            self._emit(change.kind, delta)

    def _emit(self, kind: str, delta: int):
        notification_kind, level, message = MESSAGES[kind]
        notification = Notification(
            kind=notification_kind,
            level=level,
            message=message,
            count=delta,
            play_sound=kind == ALERTS,
            created_at=datetime.now(timezone.utc),
        )
        self._history.append(notification)
        logger.info("Notification (%s, +%d): %s", notification_kind, delta, message)
        for sink in list(self._sinks):
            try:
                sink(notification)
            except Exception:
                logger.exception("Notification sink failed")

    def recent(self) -> List[Notification]:
        """Newest first"""
        return list(reversed(self._history))

    @property
    def counts(self) -> Dict[str, int]:
        return dict(self._counts)
