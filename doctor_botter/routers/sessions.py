"""Read-only session inspection endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from ..schemas import AllSessionsSummary, SessionSummary


router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("", response_model=AllSessionsSummary)
async def list_sessions(request: Request) -> AllSessionsSummary:
    """Return the rendered facts of every known chat."""

    manager = request.app.state.conversation_manager
    return AllSessionsSummary(text=manager.all_sessions_summary())


@router.get("/{chat_id}", response_model=SessionSummary)
async def fetch_session(chat_id: int, request: Request) -> SessionSummary:
    """Return the stored facts for the given chat."""

    state = request.app.state.conversation_manager.peek_state(chat_id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"No conversation found for chat '{chat_id}'.")
    return SessionSummary(chat_id=chat_id, stage=state.stage, facts=state.data)
