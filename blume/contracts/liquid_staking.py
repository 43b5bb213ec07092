"""
Liquid staking calls

Staking BLX mints stBLX, which represents the staked position and can be traded while the stake earns rewards.
`stake`, `pendingReward` and the APR constants share their shape with tiered staking.
"""
from dataclasses import dataclass
from typing import Any

from blume.contracts import ContractRead, ContractWrite, check_index
from blume.contracts.tiered_staking import StakingContract
from blume.ledger import ContractCall
from blume.model import Address, Amount, StakeRecord


@dataclass(slots=True, frozen=True)
class Redeem(ContractWrite):
    staking: StakingContract
    index: int

    def __post_init__(self):
        check_index(self.index)

    def to_call(self) -> ContractCall:
        return ContractCall(self.staking.address, "redeem", (self.index,))


@dataclass(slots=True, frozen=True)
class Stakes(ContractRead[StakeRecord]):
    """
    Single liquid stake, looked up by index
    """

    staking: StakingContract
    account: Address
    index: int

    def __post_init__(self):
        check_index(self.index)

    def to_call(self) -> ContractCall:
        return ContractCall(self.staking.address, "stakes", (self.account, self.index))

    def decode(self, data: Any) -> StakeRecord:
        return StakeRecord.from_data(self.index, data)


@dataclass(slots=True, frozen=True)
class StToken(ContractRead[Address]):
    """
    stBLX token contract address
    """

    staking: StakingContract

    def to_call(self) -> ContractCall:
        return ContractCall(self.staking.address, "stToken")

    def decode(self, data: Any) -> Address:
        return Address(str(data))


@dataclass(slots=True, frozen=True)
class TotalStaked(ContractRead[Amount]):
    staking: StakingContract

    def to_call(self) -> ContractCall:
        return ContractCall(self.staking.address, "totalStaked")

    def decode(self, data: Any) -> Amount:
        return Amount.from_base_units(data, self.staking.staking_asset)
