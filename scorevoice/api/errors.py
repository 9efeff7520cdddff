from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status


def api_error(
    *,
    code: str,
    message: str,
    details: Any | None = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "code": code,
            "message": message,
            "details": details,
        },
    )


def session_not_found(session_id: str) -> HTTPException:
    return api_error(
        code="session_not_found",
        message=f"Voice session {session_id} not found",
        details={"id": session_id},
        status_code=status.HTTP_404_NOT_FOUND,
    )


def invalid_session_state(message: str) -> HTTPException:
    return api_error(
        code="invalid_session_state",
        message=message,
        status_code=status.HTTP_409_CONFLICT,
    )
