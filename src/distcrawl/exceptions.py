"""Custom exceptions for distcrawl."""


class InvalidAddressError(ValueError):
    """Raised when a ``host:port`` address cannot be parsed."""

    def __init__(self, address: str, reason: str = "expected host:port"):
        self.address = address
        self.reason = reason
        super().__init__(f"Invalid address '{address}': {reason}")


class WorkerTransportError(Exception):
    """Raised when an RPC to a worker fails below the application level."""

    def __init__(self, address: str, message: str):
        self.address = address
        self.message = message
        super().__init__(message)
