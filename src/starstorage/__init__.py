"""
StarStorage - Observable Record Mirrors

Keeps an ordered in-memory mirror of persisted records in sync with a store
context, and notifies listeners whenever the mirror changes.
"""

from .core import (
    EntityStorage, StorageModel,
    ChangeAction, ChangeSignal, StorageChange,
    StorageError, ContextNotBoundError, FetchError, RemoveError,
)
from .persistence import (
    ModelContext, FetchDescriptor, SortCriteria, SortDirection,
    MemoryContext, SQLModelContext,
)
from .config import (
    StorageConfig, Environment, LoggingConfig,
    get_config, set_config, configure_from_dict, configure_logging,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    'EntityStorage',
    'StorageModel',
    'ChangeAction',
    'ChangeSignal',
    'StorageChange',
    'StorageError',
    'ContextNotBoundError',
    'FetchError',
    'RemoveError',

    # Persistence
    'ModelContext',
    'FetchDescriptor',
    'SortCriteria',
    'SortDirection',
    'MemoryContext',
    'SQLModelContext',

    # Configuration
    'StorageConfig',
    'Environment',
    'LoggingConfig',
    'get_config',
    'set_config',
    'configure_from_dict',
    'configure_logging',
]
