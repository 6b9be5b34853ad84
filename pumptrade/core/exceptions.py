# pumptrade/core/exceptions.py

from typing import Optional


class PumpTradeError(Exception):
    """Base class for custom exceptions in this library."""
    pass


class InvalidInputError(PumpTradeError):
    """Zero/negative amounts, mismatched argument lists, bad slippage."""
    pass


class CurveCompleteError(InvalidInputError):
    """The bonding curve has migrated; it can no longer be traded."""
    pass


class AccountNotFoundError(PumpTradeError):
    """An account expected on-chain does not exist."""

    def __init__(self, address):
        self.address = address
        super().__init__(f"Account not found: {address}")


class DeserializationError(PumpTradeError):
    """Account bytes did not match the expected layout."""
    pass


class InsufficientBalanceError(PumpTradeError):
    """For insufficient SOL or token balance."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(f"Insufficient balance: required {required}, available {available}")


class TransportError(PumpTradeError):
    """Network-level failure talking to the chain RPC or the relay."""
    pass


class RelayError(PumpTradeError):
    """Non-success HTTP status or JSON-RPC error object from the relay."""

    def __init__(self, code: int, message: str, data: Optional[object] = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"Relay error {code}: {message}")


class AddressFormatError(PumpTradeError):
    """A string could not be parsed as a base58 public key."""
    pass


class NoTipAccountsAvailableError(PumpTradeError):
    """The relay returned no tip accounts even after a refresh."""
    pass


class MissingRelayClientError(PumpTradeError):
    """A relay operation was requested but no relay client is configured."""
    pass
