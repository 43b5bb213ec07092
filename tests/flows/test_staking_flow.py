import asyncio
import unittest
from datetime import datetime, timedelta, UTC

from blume.client import BlumeClient
from blume.contracts import erc20, liquid_staking, tiered_staking
from blume.contracts.tiered_staking import LockOption
from blume.errors import AccountNotConnected, InsufficientBalance, InvalidAmount
from blume.ledger import ContractCall
from blume.model import StakeStatus, TransactionReceipt, TxnHash
from blume.orchestrator import SequenceStatus
from tests.test_support import (
    ALICE,
    BlumeIsolatedAsyncioTestCase,
    FakeLedger,
    blx,
    default_config,
)

NOW = datetime(2026, 10, 19, tzinfo=UTC)
DAY = 24 * 60 * 60


class StakingFlowTestCase(BlumeIsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        self.config = default_config()
        self.tiered = self.config.tiered_staking
        self.liquid = self.config.liquid_staking
        self.ledger = FakeLedger()
        self.client = BlumeClient(self.config, self.ledger)
        self.client.connect(ALICE)

        self.ledger.set_view(erc20.BalanceOf(self.config.blx, ALICE), blx(1_000))
        self.ledger.set_view(erc20.Allowance(self.config.blx, ALICE, self.tiered.address), 0)
        self.ledger.set_view(erc20.Allowance(self.config.blx, ALICE, self.liquid.address), 0)

    async def test_stake_500_with_zero_allowance(self):
        result = await self.client.staking.stake_tiered("500", LockOption.DAYS_30)

        self.assertEqual(SequenceStatus.CONFIRMED, result.status)
        self.assertEqual(["approve", "stake"], self.ledger.submitted_functions())

        approve, _ = self.ledger.submitted[0]
        self.assertEqual((self.tiered.address, blx(500)), approve.args)

        stakes = [call for call, _ in self.ledger.submitted if call.function == "stake"]
        self.assertEqual(1, len(stakes))
        self.assertEqual(self.tiered.address, stakes[0].contract)
        self.assertEqual((blx(500), 30 * DAY), stakes[0].args)

        with self.subTest("the allowance snapshot is re-queried, never patched"):
            query = self.client.queries.allowance(self.config.blx, self.tiered.address)
            self.assertFalse(query.stale)
            self.assertEqual(blx(500), query.value.amount.base_units)

    async def test_second_stake_reuses_allowance(self):
        self.ledger.set_view(
            erc20.Allowance(self.config.blx, ALICE, self.tiered.address), blx(1_000)
        )
        result = await self.client.staking.stake_tiered("250", LockOption.DAYS_365)
        self.assertTrue(result.confirmed)
        self.assertEqual(["stake"], self.ledger.submitted_functions())
        self.assertEqual((blx(250), 365 * DAY), self.ledger.submitted[0][0].args)

    async def test_stake_liquid(self):
        result = await self.client.staking.stake_liquid("100", LockOption.DAYS_90)
        self.assertTrue(result.confirmed)
        self.assertEqual(
            [self.config.blx.address, self.liquid.address],
            [call.contract for call, _ in self.ledger.submitted],
        )

    async def test_stake_preflight_checks(self):
        with self.assertRaises(InsufficientBalance):
            await self.client.staking.stake_tiered("1000.000001", LockOption.DAYS_30)
        with self.assertRaises(InvalidAmount):
            await self.client.staking.stake_tiered("0.0", LockOption.DAYS_30)
        self.client.disconnect()
        with self.assertRaises(AccountNotConnected):
            await self.client.staking.stake_tiered("1", LockOption.DAYS_30)
        self.assertEqual([], self.ledger.submitted)

    def set_stakes(self):
        start = int(NOW.timestamp())
        self.ledger.set_view(
            tiered_staking.GetUserStakesInfo(self.tiered, ALICE),
            [
                (blx(100), start - 40 * DAY, 30 * DAY, 500, False),
                (blx(300), start - 400 * DAY, 365 * DAY, 2000, True),
            ],
        )

    async def test_withdraw_and_redeem(self):
        self.set_stakes()
        result = await self.client.staking.withdraw_tiered(0)
        self.assertTrue(result.confirmed)
        result = await self.client.staking.redeem_liquid(2)
        self.assertTrue(result.confirmed)

        self.assertEqual(
            [
                (self.tiered.address, "withdraw", (0,)),
                (self.liquid.address, "redeem", (2,)),
            ],
            [(call.contract, call.function, call.args) for call, _ in self.ledger.submitted],
        )

        with self.assertRaises(ValueError):
            await self.client.staking.withdraw_tiered(-1)

    async def test_withdraw_requires_an_active_stake(self):
        self.set_stakes()
        with self.subTest("withdrawn stake"):
            with self.assertRaises(ValueError):
                await self.client.staking.withdraw_tiered(1)
        with self.subTest("missing stake"):
            with self.assertRaises(IndexError):
                await self.client.staking.withdraw_tiered(2)
        self.assertEqual([], self.ledger.submitted)

        with self.subTest("the stakes are re-queried before each withdrawal"):
            stakes_call = tiered_staking.GetUserStakesInfo(self.tiered, ALICE).to_call()
            self.assertEqual(2, self.ledger.read_count(stakes_call))

    async def test_reentry_after_abandon_requeries_allowance(self):
        allowance_call = erc20.Allowance(self.config.blx, ALICE, self.tiered.address).to_call()
        self.ledger.hold_confirmations = True
        stake = asyncio.create_task(
            self.client.staking.stake_tiered("500", LockOption.DAYS_30)
        )
        await asyncio.wait_for(self.ledger.awaiting_confirmation.wait(), 1)
        self.assertEqual(["approve"], self.ledger.submitted_functions())

        self.assertEqual(1, self.client.staking.abandon_all())
        result = await stake
        self.assertEqual(SequenceStatus.ABANDONED, result.status)
        reads = self.ledger.read_count(allowance_call)

        # the abandoned approve lands on the ledger after the watch was dropped
        self.ledger.set_view(allowance_call, blx(500))
        self.ledger.hold_confirmations = False

        result = await self.client.staking.stake_tiered("500", LockOption.DAYS_30)
        self.assertTrue(result.confirmed)
        self.assertGreater(self.ledger.read_count(allowance_call), reads)
        self.assertEqual(["approve", "stake"], self.ledger.submitted_functions())

    async def test_confirmed_approve_invalidates_allowance_regardless_of_address_case(self):
        query = self.client.queries.allowance(self.config.blx, self.tiered.address)
        await query.refresh()
        self.assertFalse(query.stale)

        approve = ContractCall(
            self.config.blx.address.lower(),
            "approve",
            (self.tiered.address.upper().replace("0X", "0x"), blx(1)),
        )
        self.client.staking._on_confirmed(
            approve, TransactionReceipt(TxnHash("0x01"), succeeded=True, block_number=1)
        )
        self.assertTrue(query.stale)

    async def test_stakes(self):
        start = int(NOW.timestamp())
        self.ledger.set_view(
            tiered_staking.GetUserStakesInfo(self.tiered, ALICE),
            [
                {
                    "amount": blx(1_000),
                    "startTime": start - 15 * DAY,
                    "lockDuration": 30 * DAY,
                    "apr": 500,
                    "withdrawn": False,
                },
                {
                    "amount": blx(200),
                    "startTime": start - 100 * DAY,
                    "lockDuration": 90 * DAY,
                    "apr": 1000,
                    "withdrawn": False,
                },
                (blx(300), start - 400 * DAY, 365 * DAY, 2000, True),
            ],
        )

        stakes = await self.client.staking.tiered_stakes()
        self.assertEqual([0, 1, 2], [stake.index for stake in stakes])
        self.assertEqual(blx(1_000), stakes[0].amount)

        summary = await self.client.staking.stake_summary(NOW)
        self.assertEqual(
            [StakeStatus.LOCKED, StakeStatus.UNLOCKED, StakeStatus.WITHDRAWN],
            [view.status for view in summary.stakes],
        )
        self.assertEqual(2, summary.active_count)
        self.assertEqual(blx(1_200), summary.total_active)
        # 25 BLX accrued half way through the 30 day lock, plus the full 20 BLX for the unlocked stake
        self.assertEqual(blx(45), summary.total_estimated_reward)
        self.assertEqual(timedelta(days=15), summary.stakes[0].time_remaining)
        self.assertEqual("15d 0h", summary.stakes[0].time_remaining_label)
        self.assertEqual("Unlocked", summary.stakes[1].time_remaining_label)

    async def test_pending_reward(self):
        self.ledger.set_view(
            tiered_staking.PendingReward(self.tiered, ALICE, 0), blx("12.5")
        )
        self.ledger.set_view(
            tiered_staking.PendingReward(self.liquid, ALICE, 0), blx(3)
        )
        self.ledger.set_view(liquid_staking.Stakes(self.liquid, ALICE, 0), (blx(10), 0, 0, 0, False))

        reward = await self.client.staking.pending_reward(0)
        self.assertEqual("12.5 BLX", str(reward))
        reward = await self.client.staking.pending_reward(0, liquid=True)
        self.assertEqual(blx(3), reward.base_units)

        stake = await self.client.staking.liquid_stake(0)
        self.assertEqual(blx(10), stake.amount)

    async def test_reward_estimate(self):
        self.ledger.set_view(tiered_staking.AprConstant(self.tiered, LockOption.DAYS_30), 600)

        estimate = await self.client.staking.reward_estimate("1000", LockOption.DAYS_30)
        self.assertEqual(blx(60), estimate.base_units)

        with self.subTest("advertised APR is used when the ledger constant is unavailable"):
            estimate = await self.client.staking.reward_estimate("1000", LockOption.DAYS_365)
            self.assertEqual(blx(200), estimate.base_units)


if __name__ == "__main__":
    unittest.main()
