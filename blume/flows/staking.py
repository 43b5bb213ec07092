"""
Tiered and liquid staking flows
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from typing import Iterable

from blume import calculators
from blume.contracts import liquid_staking, tiered_staking
from blume.contracts.tiered_staking import LockOption, StakingContract
from blume.flows import Flow, fetch
from blume.ledger import ContractCall
from blume.model import Address, Amount, StakeRecord, StakeStatus
from blume.orchestrator import SequenceResult


@dataclass(slots=True, frozen=True)
class StakeView:
    """
    Stake with its derived display values
    """

    stake: StakeRecord
    status: StakeStatus
    time_remaining: timedelta
    # linear estimate - the payable reward is reported by `pendingReward`
    estimated_reward: int

    @property
    def time_remaining_label(self) -> str:
        return calculators.format_time_remaining(self.time_remaining)


@dataclass(slots=True, frozen=True)
class StakeSummary:
    stakes: list[StakeView]
    total_active: int
    total_estimated_reward: int

    @property
    def active_count(self) -> int:
        return sum(1 for view in self.stakes if view.status != StakeStatus.WITHDRAWN)


def stake_view(stake: StakeRecord, now: datetime) -> StakeView:
    if stake.withdrawn:
        status = StakeStatus.WITHDRAWN
    elif stake.is_unlocked(now):
        status = StakeStatus.UNLOCKED
    else:
        status = StakeStatus.LOCKED
    return StakeView(
        stake=stake,
        status=status,
        time_remaining=calculators.lock_time_remaining(stake.unlock_time, now),
        estimated_reward=0
        if stake.withdrawn
        else calculators.pending_reward_estimate(
            stake.amount,
            stake.apr_bps,
            stake.start_time,
            stake.lock_duration,
            now,
        ),
    )


class StakingFlow(Flow):
    """
    Tiered staking locks BLX for a fixed period. Liquid staking mints stBLX for the staked BLX.
    """

    @property
    def tiered(self) -> StakingContract:
        return self.config.tiered_staking

    @property
    def liquid(self) -> StakingContract:
        return self.config.liquid_staking

    def _affected_contracts(self, call: ContractCall) -> Iterable[Address]:
        if call.contract == self.liquid.address:
            return call.contract, self.config.st_blx.address
        return (call.contract,)

    async def _stake(
        self,
        staking: StakingContract,
        orchestrator: str,
        amount: str,
        lock: LockOption,
    ) -> SequenceResult:
        account = await self._preflight()
        stake_amount = self._parse_amount(amount, staking.staking_asset)
        await self._check_balance(stake_amount, account)

        action = tiered_staking.Stake(staking, stake_amount, lock)
        authorizations = await self._authorizations(
            [stake_amount], staking.address, account
        )
        result = await self._orchestrator(orchestrator).execute(
            action, account, authorizations
        )
        return await self._after_sequence(result)

    async def stake_tiered(self, amount: str, lock: LockOption) -> SequenceResult:
        """
        Stakes BLX for the lock period. BLX is approved for the staking contract first when the allowance does not
        cover the amount.
        """
        return await self._stake(self.tiered, "tiered_stake", amount, lock)

    async def stake_liquid(self, amount: str, lock: LockOption) -> SequenceResult:
        """
        Stakes BLX and mints stBLX
        """
        return await self._stake(self.liquid, "liquid_stake", amount, lock)

    async def withdraw_tiered(self, index: int) -> SequenceResult:
        """
        Withdraws the stake's principal plus the ledger's payable reward

        :raises IndexError: if the account has no stake at the index
        :raises ValueError: if the stake has already been withdrawn
        """
        account = await self._preflight()
        action = tiered_staking.Withdraw(self.tiered, index)
        stake = await self.tiered_stake(index)
        if stake.withdrawn:
            raise ValueError(f"stake has already been withdrawn: {index}")

        result = await self._orchestrator("tiered_manage").execute(action, account)
        return await self._after_sequence(result)

    async def redeem_liquid(self, index: int) -> SequenceResult:
        """
        Burns stBLX and returns the staked BLX
        """
        account = await self._preflight()
        result = await self._orchestrator("liquid_manage").execute(
            liquid_staking.Redeem(self.liquid, index), account
        )
        return await self._after_sequence(result)

    async def tiered_stakes(self) -> list[StakeRecord]:
        """
        :raises AccountNotConnected: if no account is connected
        """
        return await fetch(self.queries.tiered_stakes())

    async def tiered_stake(self, index: int) -> StakeRecord:
        """
        :raises IndexError: if the account has no stake at the index
        """
        stakes = await self.tiered_stakes()
        if not 0 <= index < len(stakes):
            raise IndexError(f"stake does not exist: {index}")
        return stakes[index]

    async def liquid_stake(self, index: int) -> StakeRecord:
        return await fetch(self.queries.liquid_stake(index))

    async def pending_reward(self, index: int, liquid: bool = False) -> Amount:
        """
        Payable reward, as reported by the staking contract
        """
        if liquid:
            return await fetch(self.queries.liquid_pending_reward(index))
        return await fetch(self.queries.tiered_pending_reward(index))

    async def apr_bps(self, lock: LockOption) -> int:
        """
        APR reported by the staking contract. The advertised APR is used while the ledger value is unavailable.
        """
        state = await self.queries.tiered_apr(lock).refresh()
        if state.value is None:
            return lock.apr_bps
        return state.value

    async def reward_estimate(self, amount: str, lock: LockOption) -> Amount:
        """
        Reward over the full lock period - display estimate only

        :raises InvalidAmount: if the amount is malformed
        """
        principal = Amount.parse(amount, self.tiered.staking_asset)
        apr_bps = await self.apr_bps(lock)
        return Amount(
            principal.asset,
            calculators.projected_reward(principal.base_units, apr_bps),
        )

    async def stake_summary(self, now: datetime | None = None) -> StakeSummary:
        """
        Tiered stakes with their status, lock time remaining and reward estimate
        """
        now = now or datetime.now(UTC)
        views = [stake_view(stake, now) for stake in await self.tiered_stakes()]
        active = [view for view in views if view.status != StakeStatus.WITHDRAWN]
        return StakeSummary(
            stakes=views,
            total_active=sum(view.stake.amount for view in active),
            total_estimated_reward=sum(view.estimated_reward for view in active),
        )
