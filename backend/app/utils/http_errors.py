from __future__ import annotations

from fastapi import HTTPException, status

from ..services.learning_service import LearningError


def http_error(exc: LearningError) -> HTTPException:
    """Translate a service error, adding the Bearer challenge on 401."""
    headers = (
        {"WWW-Authenticate": "Bearer"}
        if exc.status_code == status.HTTP_401_UNAUTHORIZED
        else None
    )
    return HTTPException(status_code=exc.status_code, detail=exc.detail, headers=headers)


__all__ = ["http_error"]
