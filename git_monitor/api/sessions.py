"""
WebSocket session monitoring REST API endpoints.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from git_monitor.models.api_response import ApiResponse
from git_monitor.models.session import SessionInfo
from git_monitor.services.connection_registry import ConnectionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def get_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.registry


@router.get("", response_model=ApiResponse[List[SessionInfo]])
async def list_sessions(registry: ConnectionRegistry = Depends(get_registry)):
    """
    List all currently connected WebSocket sessions.

    Returns:
        Session information for every registered session
    """
    sessions = registry.list_info()
    logger.info(f"Found {len(sessions)} active sessions")
    return ApiResponse[List[SessionInfo]](success=True, data=sessions)


@router.get("/{session_id}", response_model=ApiResponse[SessionInfo])
async def get_session(session_id: str, registry: ConnectionRegistry = Depends(get_registry)):
    """
    Get details of one session.

    Args:
        session_id: Session identifier

    Raises:
        HTTPException: If the session is not registered
    """
    session = registry.get(session_id)

    if session is None:
        logger.warning(f"Session not found: {session_id}")
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")

    return ApiResponse[SessionInfo](success=True, data=session.info())
