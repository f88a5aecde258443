"""Exceptions raised by the feed ingestion core."""


class ExplorerError(Exception):
    """Base exception for feed ingestion errors."""

    pass


class ConfigError(ExplorerError):
    """Raised when feed configuration is invalid (e.g., malformed file)."""

    pass


class ContractReadError(ExplorerError):
    """Raised when a read-only contract call fails or times out."""

    pass


class UnknownNetworkError(ContractReadError):
    """Raised when no RPC endpoint is known for a network."""

    pass


class StoreError(ExplorerError):
    """Raised when a persistence call fails.

    :ivar operation: Name of the failed store operation.
    """

    def __init__(self, operation: str, message: str):
        """Initialize the store error.

        :param operation: Name of the failed store operation.
        :param message: Error description.
        """
        self.operation = operation
        super().__init__(f"{operation}: {message}")
