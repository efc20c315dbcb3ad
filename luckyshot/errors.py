"""Exceptions raised by the indexing and search operations."""


class ConfigurationError(ValueError):
    """Invalid scan or search parameters; raised before any work starts."""


class EmbeddingError(RuntimeError):
    """The embedding provider failed or returned an unusable vector."""


class CompletionError(RuntimeError):
    """The chat completion provider failed or is not configured."""


class StoreError(RuntimeError):
    """The persisted vector store is missing, unreadable or malformed."""
