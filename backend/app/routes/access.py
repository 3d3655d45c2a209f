from __future__ import annotations

from fastapi import APIRouter, Query

from ..access_control import ContentLocator
from ..auth import OptionalCurrentUser
from ..schemas.learning import AccessCheckResponse
from ..services import learning_service

router = APIRouter(prefix="/api/access", tags=["access"])


@router.get("/check", response_model=AccessCheckResponse)
async def check_access(
    current: OptionalCurrentUser,
    dialect_id: str = Query(min_length=1),
    level_id: str = Query(min_length=1),
    level_order_index: int | None = Query(default=None, ge=1),
    unit_order_index: int | None = Query(default=None, ge=1),
) -> AccessCheckResponse:
    locator = ContentLocator(
        dialect_id=dialect_id,
        level_id=level_id,
        level_order_index=level_order_index,
        unit_order_index=unit_order_index,
    )
    return await learning_service.check_access(current, locator)
