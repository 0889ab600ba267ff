"""Storage error taxonomy."""


class StorageError(Exception):
    """Base exception for storage operations"""
    pass

class ContextNotBoundError(StorageError):
    """Raised in strict mode when a mutating operation runs without a bound context"""
    pass

class FetchError(StorageError):
    """Raised when the store fails to fetch records"""
    pass

class RemoveError(StorageError):
    """Raised when the store fails a bulk delete"""
    pass
