"""
ERC-20 token calls
"""
from dataclasses import dataclass
from typing import Any

from blume.contracts import ContractRead, ContractWrite
from blume.ledger import ContractCall
from blume.model import Address, Amount, Asset, AllowanceRecord


@dataclass(slots=True, frozen=True)
class BalanceOf(ContractRead[Amount]):
    asset: Asset
    account: Address

    def to_call(self) -> ContractCall:
        return ContractCall(self.asset.address, "balanceOf", (self.account,))

    def decode(self, data: Any) -> Amount:
        return Amount.from_base_units(data, self.asset)


@dataclass(slots=True, frozen=True)
class Allowance(ContractRead[AllowanceRecord]):
    asset: Asset
    owner: Address
    spender: Address

    def to_call(self) -> ContractCall:
        return ContractCall(self.asset.address, "allowance", (self.owner, self.spender))

    def decode(self, data: Any) -> AllowanceRecord:
        return AllowanceRecord(
            owner=self.owner,
            spender=self.spender,
            amount=Amount.from_base_units(data, self.asset),
        )


@dataclass(slots=True, frozen=True)
class Approve(ContractWrite):
    """
    Authorizes `spender` to move up to `amount`. The approval targets the amount's asset contract.
    """

    spender: Address
    amount: Amount

    def to_call(self) -> ContractCall:
        return ContractCall(
            self.amount.asset.address,
            "approve",
            (self.spender, self.amount.base_units),
        )
