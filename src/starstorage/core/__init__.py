"""
StarStorage Core Module

The storage controller, its change signals and error types.
"""

from .errors import StorageError, ContextNotBoundError, FetchError, RemoveError
from .model import StorageModel
from .signals import ChangeAction, ChangeSignal, StorageChange
from .storage import EntityStorage

__all__ = [
    "EntityStorage",
    "StorageModel",
    "ChangeAction",
    "ChangeSignal",
    "StorageChange",
    "StorageError",
    "ContextNotBoundError",
    "FetchError",
    "RemoveError",
]
