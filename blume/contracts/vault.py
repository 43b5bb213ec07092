"""
BLX Vault calls

Deposits can be locked for a period in exchange for bonus rewards, and can optionally be auto-staked.
Withdrawal fees are charged by the vault contract - see `CalculateWithdrawalAmount`.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any

from blume.contracts import ContractRead, ContractWrite, check_asset, check_index
from blume.ledger import ContractCall
from blume.model import Address, Amount, Asset, DepositRecord, WithdrawalSplit


class VaultLockPeriod(Enum):
    """
    Vault lock periods: (constant name, default seconds used until the ledger constant has been queried, label)
    """

    NO_LOCK = ("NO_LOCK", 0, "No Lock")
    DAYS_7 = ("LOCK_7_DAYS", 604800, "7 Days")
    DAYS_30 = ("LOCK_30_DAYS", 2592000, "30 Days")
    DAYS_90 = ("LOCK_90_DAYS", 7776000, "90 Days")

    def __init__(self, constant: str, default_seconds: int, label: str):
        self.constant = constant
        self.default_seconds = default_seconds
        self.label = label


@dataclass(slots=True, frozen=True)
class VaultContract:
    address: Address
    asset: Asset


@dataclass(slots=True, frozen=True)
class Deposit(ContractWrite):
    vault: VaultContract
    amount: Amount
    lock_period_seconds: int
    auto_stake: bool

    def __post_init__(self):
        check_asset(self.amount, self.vault.asset, "amount")
        if self.amount.is_zero():
            raise ValueError("deposit amount must be greater than zero")
        if self.lock_period_seconds < 0:
            raise ValueError("lock period must not be negative")

    def to_call(self) -> ContractCall:
        return ContractCall(
            self.vault.address,
            "deposit",
            (self.amount.base_units, self.lock_period_seconds, self.auto_stake),
        )


@dataclass(slots=True, frozen=True)
class Withdraw(ContractWrite):
    vault: VaultContract
    index: int

    def __post_init__(self):
        check_index(self.index)

    def to_call(self) -> ContractCall:
        return ContractCall(self.vault.address, "withdraw", (self.index,))


@dataclass(slots=True, frozen=True)
class ToggleAutoStake(ContractWrite):
    vault: VaultContract
    index: int

    def __post_init__(self):
        check_index(self.index)

    def to_call(self) -> ContractCall:
        return ContractCall(self.vault.address, "toggleAutoStake", (self.index,))


@dataclass(slots=True, frozen=True)
class EmergencyWithdraw(ContractWrite):
    vault: VaultContract

    def to_call(self) -> ContractCall:
        return ContractCall(self.vault.address, "emergencyWithdraw")


@dataclass(slots=True, frozen=True)
class GetUserDeposits(ContractRead[list[DepositRecord]]):
    vault: VaultContract
    account: Address

    def to_call(self) -> ContractCall:
        return ContractCall(self.vault.address, "getUserDeposits", (self.account,))

    def decode(self, data: Any) -> list[DepositRecord]:
        return [
            DepositRecord.from_data(index, deposit) for index, deposit in enumerate(data)
        ]


@dataclass(slots=True, frozen=True)
class TotalUserBalance(ContractRead[Amount]):
    vault: VaultContract
    account: Address

    def to_call(self) -> ContractCall:
        return ContractCall(self.vault.address, "totalUserBalance", (self.account,))

    def decode(self, data: Any) -> Amount:
        return Amount.from_base_units(data, self.vault.asset)


@dataclass(slots=True, frozen=True)
class TotalVaultBalance(ContractRead[Amount]):
    vault: VaultContract

    def to_call(self) -> ContractCall:
        return ContractCall(self.vault.address, "totalVaultBalance")

    def decode(self, data: Any) -> Amount:
        return Amount.from_base_units(data, self.vault.asset)


@dataclass(slots=True, frozen=True)
class TotalAutoStaked(ContractRead[Amount]):
    vault: VaultContract

    def to_call(self) -> ContractCall:
        return ContractCall(self.vault.address, "totalAutoStaked")

    def decode(self, data: Any) -> Amount:
        return Amount.from_base_units(data, self.vault.asset)


@dataclass(slots=True, frozen=True)
class CalculateWithdrawalAmount(ContractRead[WithdrawalSplit]):
    vault: VaultContract
    account: Address
    index: int

    def __post_init__(self):
        check_index(self.index)

    def to_call(self) -> ContractCall:
        return ContractCall(
            self.vault.address, "calculateWithdrawalAmount", (self.account, self.index)
        )

    def decode(self, data: Any) -> WithdrawalSplit:
        return WithdrawalSplit.from_data(data)


@dataclass(slots=True, frozen=True)
class IsDepositLocked(ContractRead[bool]):
    vault: VaultContract
    account: Address
    index: int

    def __post_init__(self):
        check_index(self.index)

    def to_call(self) -> ContractCall:
        return ContractCall(
            self.vault.address, "isDepositLocked", (self.account, self.index)
        )

    def decode(self, data: Any) -> bool:
        return bool(data)


@dataclass(slots=True, frozen=True)
class LockPeriodConstant(ContractRead[int]):
    """
    Lock period in seconds
    """

    vault: VaultContract
    period: VaultLockPeriod

    def to_call(self) -> ContractCall:
        return ContractCall(self.vault.address, self.period.constant)

    def decode(self, data: Any) -> int:
        return int(data)


@dataclass(slots=True, frozen=True)
class VaultUintConstant(ContractRead[int]):
    """
    Vault uint256 settings, e.g., 'withdrawalFee', 'earlyWithdrawalFee'
    """

    vault: VaultContract
    name: str

    def to_call(self) -> ContractCall:
        return ContractCall(self.vault.address, self.name)

    def decode(self, data: Any) -> int:
        return int(data)


@dataclass(slots=True, frozen=True)
class Paused(ContractRead[bool]):
    vault: VaultContract

    def to_call(self) -> ContractCall:
        return ContractCall(self.vault.address, "paused")

    def decode(self, data: Any) -> bool:
        return bool(data)
