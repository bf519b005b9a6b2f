"""Infrastructure layer package."""

from .api import LedgerAPI, drain_pages
from .node import NodeRPC

__all__ = ["LedgerAPI", "NodeRPC", "drain_pages"]
