"""Server-sent event stream of family realtime events."""

import asyncio
import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import StreamingResponse

from bribebank.config import settings
from bribebank.errors import AuthenticationError
from bribebank.realtime import events
from bribebank.realtime.event_bus import QueueSubscriber, event_bus, format_sse
from bribebank.utils.security import decode_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["events"])


def _family_from_token(token: str) -> tuple[str, str]:
    if not token:
        raise AuthenticationError("UNAUTHENTICATED")
    try:
        payload = decode_token(token)
    except Exception:
        raise AuthenticationError("INVALID_TOKEN")
    family_id = payload.get("fam", "")
    if payload.get("type") != "access" or not family_id:
        raise AuthenticationError("INVALID_TOKEN")
    return family_id, payload.get("sub", "")


async def _stream(request: Request, family_id: str, subscriber: QueueSubscriber, client_id: str):
    try:
        yield format_sse(events.connected())
        while True:
            if await request.is_disconnected():
                break
            try:
                message = await asyncio.wait_for(
                    subscriber.queue.get(), timeout=settings.sse_keepalive_seconds
                )
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield format_sse(message)
    finally:
        event_bus.disconnect(client_id)
        logger.info("Realtime client %s left family %s", client_id, family_id)


@router.get("/events")
async def stream_events(request: Request, token: str = Query(default="")):
    """Subscribe to the caller's family events.

    EventSource cannot set headers, so the access token travels as a query
    parameter.
    """
    family_id, user_id = _family_from_token(token)
    subscriber = QueueSubscriber(asyncio.get_running_loop())
    client_id = event_bus.connect(family_id, subscriber)
    logger.info("Realtime client %s (user %s) joined family %s", client_id, user_id, family_id)
    return StreamingResponse(
        _stream(request, family_id, subscriber, client_id),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
