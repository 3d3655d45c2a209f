from __future__ import annotations

from typing import Any, Sequence
from uuid import UUID

from ..access_control import Purchase, purchase_from_row
from ..config import settings
from ..db import get_conn

GRANTING_STATUSES: tuple[str, ...] = ("active", "completed")


def _granting_statuses() -> list[str]:
    return list(settings.granting_purchase_statuses or GRANTING_STATUSES)


async def list_purchase_rows(user_id: str | UUID) -> Sequence[dict[str, Any]]:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT p.id,
                   p.product_id,
                   p.status,
                   CASE WHEN pr.id IS NULL THEN NULL
                        ELSE jsonb_build_object(
                            'scope', pr.scope,
                            'dialect_id', pr.dialect_id,
                            'level_id', pr.level_id
                        )
                   END AS products
              FROM app.purchases AS p
              LEFT JOIN app.products AS pr ON pr.id = p.product_id
             WHERE p.user_id = %s
               AND p.status = ANY(%s)
             ORDER BY p.created_at DESC
            """,
            (user_id, _granting_statuses()),
        )
        rows = await cur.fetchall()
    return [dict(row) for row in rows]


async def list_granting_purchases(user_id: str | UUID | None) -> list[Purchase]:
    """Purchases of ``user_id`` whose status grants access; [] for anonymous."""
    if not user_id:
        return []
    rows = await list_purchase_rows(user_id)
    return [purchase_from_row(row) for row in rows]


__all__ = ["GRANTING_STATUSES", "list_granting_purchases", "list_purchase_rows"]
