"""
Tiered staking calls

Stakes are locked for a fixed period. Longer lock periods earn a higher APR.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any

from blume.contracts import ContractRead, ContractWrite, check_asset, check_index
from blume.ledger import ContractCall
from blume.model import Address, Amount, Asset, StakeRecord

DAY = 24 * 60 * 60


class LockOption(Enum):
    """
    Staking lock choices: (lock duration in seconds, advertised APR in basis points, APR constant name)
    """

    DAYS_30 = (30 * DAY, 500, "APR_30D")
    DAYS_90 = (90 * DAY, 1000, "APR_90D")
    DAYS_365 = (365 * DAY, 2000, "APR_365D")

    def __init__(self, seconds: int, apr_bps: int, apr_constant: str):
        self.seconds = seconds
        self.apr_bps = apr_bps
        self.apr_constant = apr_constant

    @property
    def label(self) -> str:
        return f"{self.seconds // DAY} Days"

    @classmethod
    def from_days(cls, days: int) -> "LockOption":
        for option in cls:
            if option.seconds == days * DAY:
                return option
        raise ValueError(f"unsupported lock period: {days} days")


@dataclass(slots=True, frozen=True)
class StakingContract:
    address: Address
    staking_asset: Asset


@dataclass(slots=True, frozen=True)
class Stake(ContractWrite):
    staking: StakingContract
    amount: Amount
    lock: LockOption

    def __post_init__(self):
        check_asset(self.amount, self.staking.staking_asset, "amount")
        if self.amount.is_zero():
            raise ValueError("stake amount must be greater than zero")

    def to_call(self) -> ContractCall:
        return ContractCall(
            self.staking.address,
            "stake",
            (self.amount.base_units, self.lock.seconds),
        )


@dataclass(slots=True, frozen=True)
class Withdraw(ContractWrite):
    staking: StakingContract
    index: int

    def __post_init__(self):
        check_index(self.index)

    def to_call(self) -> ContractCall:
        return ContractCall(self.staking.address, "withdraw", (self.index,))


@dataclass(slots=True, frozen=True)
class PendingReward(ContractRead[Amount]):
    """
    Authoritative reward payable for the stake
    """

    staking: StakingContract
    account: Address
    index: int

    def __post_init__(self):
        check_index(self.index)

    def to_call(self) -> ContractCall:
        return ContractCall(
            self.staking.address, "pendingReward", (self.account, self.index)
        )

    def decode(self, data: Any) -> Amount:
        return Amount.from_base_units(data, self.staking.staking_asset)


@dataclass(slots=True, frozen=True)
class GetUserStakesInfo(ContractRead[list[StakeRecord]]):
    staking: StakingContract
    account: Address

    def to_call(self) -> ContractCall:
        return ContractCall(self.staking.address, "getUserStakesInfo", (self.account,))

    def decode(self, data: Any) -> list[StakeRecord]:
        return [StakeRecord.from_data(index, stake) for index, stake in enumerate(data)]


@dataclass(slots=True, frozen=True)
class StakesLength(ContractRead[int]):
    staking: StakingContract
    account: Address

    def to_call(self) -> ContractCall:
        return ContractCall(self.staking.address, "stakesLength", (self.account,))

    def decode(self, data: Any) -> int:
        return int(data)


@dataclass(slots=True, frozen=True)
class AprConstant(ContractRead[int]):
    """
    APR in basis points for the lock option
    """

    staking: StakingContract
    lock: LockOption

    def to_call(self) -> ContractCall:
        return ContractCall(self.staking.address, self.lock.apr_constant)

    def decode(self, data: Any) -> int:
        return int(data)


@dataclass(slots=True, frozen=True)
class TotalRewards(ContractRead[Amount]):
    staking: StakingContract

    def to_call(self) -> ContractCall:
        return ContractCall(self.staking.address, "totalRewards")

    def decode(self, data: Any) -> Amount:
        return Amount.from_base_units(data, self.staking.staking_asset)
