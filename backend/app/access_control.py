"""Entitlement rules deciding which curriculum a learner may open.

A learner may open a unit when it is the free trial unit (first unit of the
first level) or when any of their granting purchases covers it:

* ``all`` scope products cover the whole platform,
* ``bundle`` scope products cover every level of one dialect,
* ``level`` scope products cover a single level.

Everything here is pure and total. Rows coming from the database are loosely
typed (a scope string plus two nullable references); they are converted into
one of the grant dataclasses below, and anything that does not form a valid
grant simply grants nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Union

FREE_TRIAL_LEVEL_ORDER = 1
FREE_TRIAL_UNIT_ORDER = 1


class Scope(str, Enum):
    all = "all"
    bundle = "bundle"
    level = "level"


@dataclass(frozen=True)
class AllAccess:
    scope = Scope.all


@dataclass(frozen=True)
class DialectBundle:
    dialect_id: str
    scope = Scope.bundle


@dataclass(frozen=True)
class LevelGrant:
    level_id: str
    scope = Scope.level


ProductGrant = Union[AllAccess, DialectBundle, LevelGrant]


@dataclass(frozen=True)
class Purchase:
    id: str
    product_id: Optional[str]
    status: Optional[str]
    grant: Optional[ProductGrant]


@dataclass(frozen=True)
class ContentLocator:
    dialect_id: str
    level_id: str
    level_order_index: Optional[int] = None
    unit_order_index: Optional[int] = None


def _ref(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def grant_from_product(product: Mapping[str, Any] | None) -> Optional[ProductGrant]:
    """Build the grant a product row describes, or None if it grants nothing."""
    if not product:
        return None
    scope = product.get("scope")
    if scope == Scope.all.value:
        return AllAccess()
    if scope == Scope.bundle.value:
        dialect_id = _ref(product.get("dialect_id"))
        return DialectBundle(dialect_id) if dialect_id else None
    if scope == Scope.level.value:
        level_id = _ref(product.get("level_id"))
        return LevelGrant(level_id) if level_id else None
    return None


def purchase_from_row(row: Mapping[str, Any]) -> Purchase:
    """Convert a purchases row with its embedded ``products`` snapshot.

    The product may be embedded under ``products`` (PostgREST style) or
    ``product``; a list with one element is accepted too.
    """
    product = row.get("products", row.get("product"))
    if isinstance(product, list):
        product = product[0] if product else None
    if product is not None and not isinstance(product, Mapping):
        product = None
    return Purchase(
        id=str(row.get("id")),
        product_id=_ref(row.get("product_id")),
        status=row.get("status"),
        grant=grant_from_product(product),
    )


def is_free_trial(level_order_index: int, unit_order_index: int) -> bool:
    return (
        level_order_index == FREE_TRIAL_LEVEL_ORDER
        and unit_order_index == FREE_TRIAL_UNIT_ORDER
    )


def _grants(purchases: Iterable[Purchase] | None) -> list[ProductGrant]:
    if not purchases:
        return []
    return [purchase.grant for purchase in purchases if purchase.grant is not None]


def has_all_access(purchases: Iterable[Purchase] | None) -> bool:
    return any(isinstance(grant, AllAccess) for grant in _grants(purchases))


def has_dialect_bundle_access(purchases: Iterable[Purchase] | None, dialect_id: str) -> bool:
    target = _ref(dialect_id)
    if target is None:
        return False
    return any(
        isinstance(grant, DialectBundle) and grant.dialect_id == target
        for grant in _grants(purchases)
    )


def has_level_purchase(purchases: Iterable[Purchase] | None, level_id: str) -> bool:
    target = _ref(level_id)
    if target is None:
        return False
    return any(
        isinstance(grant, LevelGrant) and grant.level_id == target
        for grant in _grants(purchases)
    )


def has_access_to_level(
    purchases: Iterable[Purchase] | None,
    level_id: str,
    dialect_id: str,
    level_order_index: int | None = None,
    unit_order_index: int | None = None,
) -> bool:
    """Return True when the learner may open content of ``level_id``.

    Supplying both order indices lets the free trial unit through regardless
    of purchases. Holding any one covering purchase is enough.
    """
    return access_reason(
        purchases, level_id, dialect_id, level_order_index, unit_order_index
    ) is not None


def access_reason(
    purchases: Iterable[Purchase] | None,
    level_id: str,
    dialect_id: str,
    level_order_index: int | None = None,
    unit_order_index: int | None = None,
) -> Optional[str]:
    """Name the rule that grants access (``free_trial`` or a scope), or None."""
    if (
        level_order_index is not None
        and unit_order_index is not None
        and is_free_trial(level_order_index, unit_order_index)
    ):
        return "free_trial"
    purchases = list(purchases or [])
    if not purchases:
        return None
    if has_all_access(purchases):
        return Scope.all.value
    if has_dialect_bundle_access(purchases, dialect_id):
        return Scope.bundle.value
    if has_level_purchase(purchases, level_id):
        return Scope.level.value
    return None


def can_access(purchases: Iterable[Purchase] | None, locator: ContentLocator) -> bool:
    return has_access_to_level(
        purchases,
        locator.level_id,
        locator.dialect_id,
        locator.level_order_index,
        locator.unit_order_index,
    )


__all__ = [
    "AllAccess",
    "ContentLocator",
    "DialectBundle",
    "LevelGrant",
    "ProductGrant",
    "Purchase",
    "Scope",
    "access_reason",
    "can_access",
    "grant_from_product",
    "has_access_to_level",
    "has_all_access",
    "has_dialect_bundle_access",
    "has_level_purchase",
    "is_free_trial",
    "purchase_from_row",
]
