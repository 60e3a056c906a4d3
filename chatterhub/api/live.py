"""
Server-sent event stream of live collection snapshots.
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from typing import AsyncIterator, Awaitable, Callable, Optional
import json

from chatterhub.utils.logging_utils import logger

from ..storage.backend import Store
from ..storage.live import LiveQueryEngine, Subscription, collection_query
from .deps import get_live_engine, get_store

router = APIRouter(prefix="/api/v1/live", tags=["live"])


def send_sse_event(event_type: str, data: dict) -> str:
    """Helper to format SSE events."""
    event_json = json.dumps({"type": event_type, **data})
    return f"data: {event_json}\n\n"


async def snapshot_events(
    subscription: Subscription,
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
) -> AsyncIterator[str]:
    """One ``snapshot`` event per delivered result; unsubscribes when done."""
    try:
        async for records in subscription:
            if is_disconnected is not None and await is_disconnected():
                break
            yield send_sse_event("snapshot", {"records": records})
    finally:
        subscription.unsubscribe()


@router.get("/{collection}")
async def live_collection(
    collection: str,
    request: Request,
    order_by: Optional[str] = None,
    store: Store = Depends(get_store),
    engine: LiveQueryEngine = Depends(get_live_engine),
):
    """Stream the collection's records now and again after every change."""
    if collection not in store.collection_names:
        raise HTTPException(status_code=404, detail=f"Unknown collection: {collection}")

    subscription = await engine.subscribe(collection_query(collection, order_by=order_by))
    logger.debug(f"Live stream opened for {collection}")
    return StreamingResponse(
        snapshot_events(subscription, request.is_disconnected),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
