"""
Blume domain model

All amounts held by the model are integers in base units, i.e., the smallest denomination of the asset on the ledger.
Use `Amount.parse` to convert user entered decimal strings, which goes through the decimal codec.
"""

from dataclasses import dataclass
from datetime import datetime, UTC
from enum import Enum
from typing import NewType, Any, Sequence

from blume import codec

# EVM account or contract address, 0x prefixed hex
Address = NewType("Address", str)

TxnHash = NewType("TxnHash", str)

ChainId = NewType("ChainId", int)

ZERO_ADDRESS = Address("0x0000000000000000000000000000000000000000")

BASIS_POINTS = 10_000


@dataclass(slots=True, frozen=True)
class Asset:
    """
    Fungible token, defined at configuration time.
    """

    symbol: str
    decimals: int
    address: Address
    name: str = ""

    def __post_init__(self):
        if self.decimals < 0:
            raise ValueError(f"decimals must not be negative: {self.symbol}")


@dataclass(slots=True, frozen=True)
class Amount:
    """
    Asset scoped quantity.

    Amounts are only constructed from user input via the decimal codec (`Amount.parse`) or from integers returned by
    the ledger (`Amount.from_base_units`).
    """

    asset: Asset
    base_units: int

    def __post_init__(self):
        if self.base_units < 0:
            raise ValueError("amount must not be negative")

    @classmethod
    def parse(cls, display: str, asset: Asset) -> "Amount":
        """
        :raises InvalidAmount: if `display` is not a valid decimal literal for the asset
        """
        return cls(asset, codec.to_base_units(display, asset.decimals))

    @classmethod
    def from_base_units(cls, base_units: int, asset: Asset) -> "Amount":
        return cls(asset, int(base_units))

    @classmethod
    def zero(cls, asset: Asset) -> "Amount":
        return cls(asset, 0)

    @property
    def display(self) -> str:
        return codec.to_display(self.base_units, self.asset.decimals)

    def is_zero(self) -> bool:
        return self.base_units == 0

    def __str__(self) -> str:
        return f"{self.display} {self.asset.symbol}"


@dataclass(slots=True, frozen=True)
class ReservePair:
    """
    Pool reserves, as returned by `getReserves`
    """

    reserve0: int
    reserve1: int
    block_timestamp_last: int

    @classmethod
    def from_data(cls, data: Sequence[Any]) -> "ReservePair":
        """
        :param data: (reserve0, reserve1, blockTimestampLast)
        """
        return cls(
            reserve0=int(data[0]),
            reserve1=int(data[1]),
            block_timestamp_last=int(data[2]),
        )

    def ordered(self, zero_for_one: bool) -> tuple[int, int]:
        """
        :return: (reserve_in, reserve_out) for the swap direction
        """
        if zero_for_one:
            return self.reserve0, self.reserve1
        return self.reserve1, self.reserve0

    @property
    def last_updated(self) -> datetime:
        return datetime.fromtimestamp(self.block_timestamp_last, UTC)


@dataclass(slots=True, frozen=True)
class AllowanceRecord:
    """
    Ledger approval permitting `spender` to move up to `amount` of the owner's asset.
    """

    owner: Address
    spender: Address
    amount: Amount

    @property
    def asset(self) -> Asset:
        return self.amount.asset


@dataclass(slots=True, frozen=True)
class StakeRecord:
    """
    Tiered or liquid stake, as returned by `getUserStakesInfo` / `stakes`
    """

    index: int
    amount: int
    start_time: int
    lock_duration: int
    apr_bps: int
    withdrawn: bool

    @classmethod
    def from_data(cls, index: int, data: Any) -> "StakeRecord":
        """
        :param data: mapping with keys 'amount', 'startTime', 'lockDuration', 'apr', 'withdrawn'
                     or a tuple in that order
        """
        if isinstance(data, dict):
            data = (
                data["amount"],
                data["startTime"],
                data["lockDuration"],
                data["apr"],
                data["withdrawn"],
            )
        return cls(
            index=index,
            amount=int(data[0]),
            start_time=int(data[1]),
            lock_duration=int(data[2]),
            apr_bps=int(data[3]),
            withdrawn=bool(data[4]),
        )

    @property
    def unlock_time(self) -> int:
        return self.start_time + self.lock_duration

    def is_unlocked(self, now: datetime) -> bool:
        return now.timestamp() >= self.unlock_time


class StakeStatus(Enum):
    LOCKED = "Locked"
    UNLOCKED = "Unlocked"
    WITHDRAWN = "Withdrawn"


@dataclass(slots=True, frozen=True)
class DepositRecord:
    """
    Vault deposit, as returned by `getUserDeposits`
    """

    index: int
    amount: int
    deposit_time: int
    lock_until: int
    auto_stake: bool
    withdrawn: bool

    @classmethod
    def from_data(cls, index: int, data: Any) -> "DepositRecord":
        """
        :param data: mapping with keys 'amount', 'depositTime', 'lockUntil', 'autoStake', 'withdrawn'
                     or a tuple in that order
        """
        if isinstance(data, dict):
            data = (
                data["amount"],
                data["depositTime"],
                data["lockUntil"],
                data["autoStake"],
                data["withdrawn"],
            )
        return cls(
            index=index,
            amount=int(data[0]),
            deposit_time=int(data[1]),
            lock_until=int(data[2]),
            auto_stake=bool(data[3]),
            withdrawn=bool(data[4]),
        )


@dataclass(slots=True, frozen=True)
class WithdrawalSplit:
    """
    Vault withdrawal split, as reported by the ledger's `calculateWithdrawalAmount` view.
    The fee policy is owned by the vault contract and is never derived locally.
    """

    net_amount: int
    fee: int

    @classmethod
    def from_data(cls, data: Sequence[Any]) -> "WithdrawalSplit":
        return cls(net_amount=int(data[0]), fee=int(data[1]))


@dataclass(slots=True, frozen=True)
class TransactionReceipt:
    """
    Ledger report of a transaction's inclusion
    """

    txn_hash: TxnHash
    succeeded: bool
    block_number: int | None = None
    revert_reason: str | None = None
