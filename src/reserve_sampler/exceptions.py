"""Custom exceptions for the reserve sampler.

Fetch failures are block-scoped: they end the invocation for one block.
Persistence failures are row-scoped: they are logged and the batch goes on.
"""


class SamplerError(Exception):
    """Base exception for all sampler errors."""


class TransientFetchError(SamplerError):
    """Raised when a remote reserve query fails and may succeed on retry."""


class FetchExhausted(SamplerError):
    """Raised when a retried operation fails on every allowed attempt.

    The last underlying error is available as ``__cause__``.
    """

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class PersistenceError(SamplerError):
    """Raised when a single snapshot row cannot be written."""

    def __init__(self, message: str, asset: str, block_number: int) -> None:
        super().__init__(message)
        self.asset = asset
        self.block_number = block_number
