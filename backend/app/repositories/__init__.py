from . import catalog, progress, purchases
from .purchases import list_granting_purchases

__all__ = ["catalog", "list_granting_purchases", "progress", "purchases"]
