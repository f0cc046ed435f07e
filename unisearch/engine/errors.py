"""Error types raised by the search engine."""


class UniSearchError(Exception):
    """Base class for all unisearch errors."""


class StorageError(UniSearchError):
    """A persistent store could not read or write a key."""

    def __init__(self, key: str, message: str):
        super().__init__(f"{key}: {message}")
        self.key = key


class HistoryLoadError(UniSearchError):
    """Persisted history payload is malformed."""


class UnknownAlgorithmError(UniSearchError, ValueError):
    """Raised when a matching algorithm name is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Unknown search algorithm: {name}")
        self.name = name
