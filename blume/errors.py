"""
Blume client errors
"""

import functools
from dataclasses import dataclass
from typing import Callable, Any, Awaitable, TypeVar

T = TypeVar("T")


class BlumeError(Exception):
    """
    Blume client base exception
    """


class ConfigError(BlumeError):
    """
    Configuration is missing a required setting or has an invalid value
    """


class InvalidAmount(BlumeError, ValueError):
    """
    Amount is malformed, non-numeric, negative or has more fractional digits than the asset supports.

    Raised before any ledger call is attempted.
    """


@dataclass
class InsufficientBalance(BlumeError):
    """
    Account balance does not cover the requested amount
    """

    symbol: str
    required: int
    available: int

    def __str__(self) -> str:
        return f"insufficient {self.symbol} balance: required={self.required}, available={self.available}"


@dataclass
class InsufficientAllowance(BlumeError):
    """
    Spender is not authorized to move the requested amount
    """

    symbol: str
    required: int
    allowance: int | None

    def __str__(self) -> str:
        return f"insufficient {self.symbol} allowance: required={self.required}, allowance={self.allowance}"


class NetworkFailure(BlumeError):
    """
    Query or submission could not reach the ledger.

    Recovered by a manual refresh - requests are never retried automatically.
    """


@dataclass
class TransactionReverted(BlumeError):
    """
    Ledger rejected the transaction
    """

    reason: str | None = None
    txn_hash: str | None = None

    def __str__(self) -> str:
        return f"transaction reverted: reason={self.reason}, txn_hash={self.txn_hash}"


@dataclass
class TransactionRejected(BlumeError):
    """
    Transaction was refused before it was included, e.g., the wallet declined to sign or gas estimation failed
    """

    reason: str

    def __str__(self) -> str:
        return f"transaction rejected: {self.reason}"


@dataclass
class AlreadyInProgress(BlumeError):
    """
    A transaction sequence is already outstanding for the flow
    """

    flow: str

    def __str__(self) -> str:
        return f"transaction sequence already in progress: {self.flow}"


@dataclass
class WrongNetwork(BlumeError):
    """
    Connected ledger does not match the configured chain ID.
    All write calls are blocked until corrected.
    """

    expected: int
    actual: int | None

    def __str__(self) -> str:
        return f"wrong network: expected chain_id={self.expected}, actual={self.actual}"


class TradingDisabled(BlumeError):
    """
    Pool trading is disabled
    """


@dataclass
class DepositLocked(BlumeError):
    """
    Vault deposit lock period has not elapsed
    """

    index: int

    def __str__(self) -> str:
        return f"deposit is locked: index={self.index}"


class AccountNotConnected(BlumeError):
    """
    Operation requires a connected account
    """


def _map_ledger_error(err: Exception) -> Exception:
    if isinstance(err, BlumeError):
        return err
    if isinstance(err, (ConnectionError, TimeoutError, OSError)):
        return NetworkFailure(str(err) or err.__class__.__name__)
    return err


def handle_ledger_errors(
    func: Callable[..., Awaitable[T]]
) -> Callable[..., Awaitable[T]]:
    """
    Decorator for coroutines that talk to the ledger. Transport errors are mapped to BlumeError exceptions.
    If the exceptions cannot be mapped, then they are simply re-raised.

    - BlumeError - re-raised as is
    - ConnectionError, TimeoutError, OSError - raises NetworkFailure
    """

    @functools.wraps(func)
    async def wrapped_func(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except Exception as err:
            mapped = _map_ledger_error(err)
            if mapped is err:
                raise
            raise mapped from err

    return wrapped_func
