"""Best-effort web push delivery to a user's registered devices.

Runs on a small thread pool so request handlers never wait on delivery.
Failures are logged and swallowed; subscriptions rejected permanently by
the push service (404/410) are removed.
"""

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Optional

from pywebpush import WebPushException, webpush
from sqlmodel import Session, select

from bribebank.config import settings
from bribebank.models.activity import PushSubscription

logger = logging.getLogger(__name__)

STALE_STATUS_CODES = (404, 410)

SENT = "sent"
STALE = "stale"
FAILED = "failed"


class PushNotifier:
    def __init__(self, engine=None):
        self._engine = engine
        self._executor: ThreadPoolExecutor | None = None
        if not settings.push_enabled:
            logger.warning("VAPID keys not configured, web push disabled")

    @property
    def enabled(self) -> bool:
        return settings.push_enabled

    def _get_engine(self):
        if self._engine is None:
            from bribebank.database import engine
            self._engine = engine
        return self._engine

    def submit(self, user_id: str, payload: dict[str, Any]) -> Optional[Future]:
        """Schedule delivery in the background. Never raises."""
        if not self.enabled:
            return None
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=settings.push_workers, thread_name_prefix="push"
            )
        return self._executor.submit(self.send_to_user, user_id, payload)

    def send_to_user(self, user_id: str, payload: dict[str, Any]) -> int:
        """Deliver to every subscription of a user. Returns the number delivered."""
        data = json.dumps({"url": settings.push_default_url, **payload}, ensure_ascii=False)
        delivered = 0
        try:
            with Session(self._get_engine()) as session:
                subs = session.exec(
                    select(PushSubscription).where(PushSubscription.user_id == user_id)
                ).all()
                for sub in subs:
                    outcome = self._send_one(sub, data)
                    if outcome == SENT:
                        delivered += 1
                    elif outcome == STALE:
                        session.delete(sub)
                session.commit()
        except Exception as e:
            logger.error("Push delivery to %s failed: %s", user_id, e)
        return delivered

    def _send_one(self, sub: PushSubscription, data: str) -> str:
        try:
            webpush(
                subscription_info={
                    "endpoint": sub.endpoint,
                    "keys": {"p256dh": sub.p256dh, "auth": sub.auth},
                },
                data=data,
                vapid_private_key=settings.vapid_private_key,
                vapid_claims={"sub": settings.vapid_subject},
            )
            return SENT
        except WebPushException as e:
            status_code = getattr(e.response, "status_code", None)
            if status_code in STALE_STATUS_CODES:
                logger.warning("Removing stale push subscription %s (%s)", sub.id, status_code)
                return STALE
            logger.error("Push send error for subscription %s: %s", sub.id, e)
            return FAILED

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None


push_notifier = PushNotifier()
