from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from gyansetu.errors import ErrorKind, PortalError
from gyansetu.schemas import ChatMessageIn, LiveStreamIn, NotificationIn
from gyansetu.services.access_guard import (
    require_authenticated, require_admin, get_settings, get_sessions, session_token
)
from gyansetu.services.live_hub import LiveHub

# Hub handlers must stay async: the hub is only used from the event loop
router = APIRouter(tags=["live"])

MAX_CHAT_LENGTH = 500


def get_hub(request: Request) -> LiveHub:
    return request.app.state.hub

@router.get("/events")
async def events(
    request: Request,
    user: dict = Depends(require_authenticated),
    hub: LiveHub = Depends(get_hub)
):
    """Server-sent events: snapshot first, then live / notification / chat / scholarship"""
    keepalive = get_settings(request).LIVE_KEEPALIVE_SECONDS
    sessions = get_sessions(request)
    token = session_token(request)

    # Ends on client disconnect, logout or session expiry
    async def is_closed() -> bool:
        return sessions.get(token) is None or await request.is_disconnected()

    return StreamingResponse(
        hub.stream(is_closed, keepalive=keepalive),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}
    )

@router.get("/live/state")
async def live_state(user: dict = Depends(require_authenticated), hub: LiveHub = Depends(get_hub)):
    return hub.snapshot()

@router.get("/live/chat")
async def chat_history(user: dict = Depends(require_authenticated), hub: LiveHub = Depends(get_hub)):
    return {"messages": list(hub.chat)}

@router.post("/live/chat", status_code=201)
async def post_chat(
    payload: ChatMessageIn,
    user: dict = Depends(require_authenticated),
    hub: LiveHub = Depends(get_hub)
):
    message = payload.message.strip()
    if not message:
        raise PortalError(ErrorKind.VALIDATION_ERROR, "Message cannot be empty")
    if len(message) > MAX_CHAT_LENGTH:
        raise PortalError(ErrorKind.VALIDATION_ERROR, f"Message is longer than {MAX_CHAT_LENGTH} characters")
    return {"message": hub.post_chat(user, message)}

@router.post("/live/stream")
async def set_live_stream(
    payload: LiveStreamIn,
    admin: dict = Depends(require_admin),
    hub: LiveHub = Depends(get_hub)
):
    return {"live": hub.set_live_url((payload.url or "").strip())}

@router.post("/live/notification")
async def set_notification(
    payload: NotificationIn,
    admin: dict = Depends(require_admin),
    hub: LiveHub = Depends(get_hub)
):
    return {"notification": hub.set_notification((payload.message or "").strip())}
