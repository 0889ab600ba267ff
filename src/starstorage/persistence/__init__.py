"""
StarStorage Persistence Module

Store contexts an EntityStorage can bind to.
"""

from .base import FetchDescriptor, ModelContext, SortCriteria, SortDirection
from .memory import MemoryContext
from .sql import SQLModelContext

__all__ = [
    "ModelContext",
    "FetchDescriptor",
    "SortCriteria",
    "SortDirection",
    "MemoryContext",
    "SQLModelContext",
]
