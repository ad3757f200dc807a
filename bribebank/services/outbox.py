"""Post-commit side effects collected while a transaction is open.

Lifecycle operations record what should happen once their transaction
commits (realtime broadcasts, push notifications) instead of performing
delivery themselves. Only a committed outbox is ever dispatched.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class PushMessage:
    user_id: str
    payload: dict[str, Any]


@dataclass
class Outbox:
    events: list[dict[str, Any]] = field(default_factory=list)
    pushes: list[PushMessage] = field(default_factory=list)
    committed: bool = False

    def broadcast(self, event: dict[str, Any]) -> None:
        """Queue a realtime event; it must carry a ``familyId``."""
        self.events.append(event)

    def push(
        self,
        user_id: str,
        title: str,
        body: str,
        *,
        tag: str,
        type: str,
        url: Optional[str] = None,
        **extra: Any,
    ) -> None:
        payload = {"title": title, "body": body, "tag": tag, "type": type, **extra}
        if url is not None:
            payload["url"] = url
        self.pushes.append(PushMessage(user_id=user_id, payload=payload))

    def push_many(self, user_ids, title: str, body: str, **kwargs: Any) -> None:
        for user_id in user_ids:
            self.push(user_id, title, body, **kwargs)

    def mark_committed(self) -> None:
        self.committed = True
