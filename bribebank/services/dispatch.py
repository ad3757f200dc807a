"""Delivers a committed outbox: realtime broadcasts first, then push."""

import logging

from bribebank.realtime.event_bus import EventBus, event_bus
from bribebank.services.outbox import Outbox
from bribebank.services.push_service import PushNotifier, push_notifier

logger = logging.getLogger(__name__)


class EffectDispatcher:
    def __init__(self, bus: EventBus, notifier: PushNotifier):
        self._bus = bus
        self._notifier = notifier

    def dispatch(self, outbox: Outbox) -> None:
        if not outbox.committed:
            return
        for event in outbox.events:
            try:
                self._bus.broadcast(event["familyId"], event)
            except Exception:
                logger.exception("Realtime broadcast failed: %s", event.get("type"))
        for message in outbox.pushes:
            try:
                self._notifier.submit(message.user_id, message.payload)
            except Exception:
                logger.exception("Could not schedule push for %s", message.user_id)


dispatcher = EffectDispatcher(event_bus, push_notifier)
