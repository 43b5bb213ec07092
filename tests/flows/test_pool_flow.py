import asyncio
import unittest
from decimal import Decimal

from blume import calculators
from blume.client import BlumeClient
from blume.contracts import erc20, pool
from blume.errors import (
    AccountNotConnected,
    AlreadyInProgress,
    InsufficientBalance,
    InvalidAmount,
    TradingDisabled,
    WrongNetwork,
)
from blume.ledger import ContractCall
from blume.model import Amount, ReservePair
from blume.orchestrator import SequenceStatus
from tests.test_support import (
    ALICE,
    BlumeIsolatedAsyncioTestCase,
    FakeLedger,
    blx,
    default_config,
)

RESERVES = (blx(1_000_000), blx(1_000_000), 1_700_000_000)


class PoolFlowTestCase(BlumeIsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        self.config = default_config()
        self.pool = self.config.pool
        self.ledger = FakeLedger()
        self.client = BlumeClient(self.config, self.ledger)
        self.client.connect(ALICE)

        self.ledger.set_view(erc20.BalanceOf(self.config.blx, ALICE), blx(10_000))
        self.ledger.set_view(erc20.BalanceOf(self.config.usdc, ALICE), blx(5_000))
        for asset in (self.config.blx, self.config.usdc):
            self.ledger.set_view(erc20.Allowance(asset, ALICE, self.pool.address), 0)
        self.ledger.set_view(pool.TradingEnabled(self.pool), True)
        self.ledger.set_view(pool.SwapFee(self.pool), 30)
        self.ledger.set_view(pool.GetReserves(self.pool), RESERVES)
        self.ledger.set_view(pool.TotalSupply(self.pool), blx(1_000))
        self.ledger.set_view(pool.LiquidityBalance(self.pool, ALICE), blx(25))
        self.set_amount_out(blx(1_000))

    def set_amount_out(self, amount_in: int):
        amount_out = calculators.swap_amount_out(amount_in, RESERVES[0], RESERVES[1], 30)
        self.ledger.set_view(
            ContractCall(
                self.pool.address, "getAmountOut", (amount_in, RESERVES[0], RESERVES[1])
            ),
            amount_out,
        )
        return amount_out

    def allowance_call(self, asset) -> ContractCall:
        return erc20.Allowance(asset, ALICE, self.pool.address).to_call()

    async def test_quote_swap(self):
        quote = await self.client.pool.quote_swap("1000", self.config.blx)
        self.assertEqual(self.config.usdc, quote.amount_out.asset)
        self.assertEqual(
            calculators.swap_amount_out(blx(1_000), RESERVES[0], RESERVES[1], 30),
            quote.amount_out.base_units,
        )
        self.assertEqual(
            quote.amount_out.base_units * 9_900 // 10_000,
            quote.min_amount_out.base_units,
        )
        self.assertEqual(30, quote.fee_bps)
        self.assertEqual(100, quote.slippage_bps)

        with self.subTest("quote does not require an account"):
            self.client.disconnect()
            quote = await self.client.pool.quote_swap("1000", self.config.usdc, 50)
            self.assertEqual(self.config.blx, quote.amount_out.asset)
            self.assertEqual(50, quote.slippage_bps)

    async def test_swap_with_authorization(self):
        amount_out = calculators.swap_amount_out(blx(1_000), RESERVES[0], RESERVES[1], 30)

        result = await self.client.pool.swap("1000", self.config.blx)

        self.assertEqual(SequenceStatus.CONFIRMED, result.status)
        self.assertEqual(
            ["approve", "swapExactTokensForTokens"], self.ledger.submitted_functions()
        )
        approve, _ = self.ledger.submitted[0]
        self.assertEqual(self.config.blx.address, approve.contract)
        self.assertEqual((self.pool.address, blx(1_000)), approve.args)

        swap, sender = self.ledger.submitted[1]
        self.assertEqual(ALICE, sender)
        self.assertEqual(
            (blx(1_000), amount_out * 9_900 // 10_000, True, ALICE), swap.args
        )

        with self.subTest("confirmed writes re-query the affected snapshots"):
            balance_call = erc20.BalanceOf(self.config.blx, ALICE).to_call()
            self.assertEqual(2, self.ledger.read_count(balance_call))
            self.assertEqual(2, self.ledger.read_count(self.allowance_call(self.config.blx)))
            self.assertEqual(
                2, self.ledger.read_count(pool.GetReserves(self.pool).to_call())
            )

    async def test_swap_quotes_are_read_once_per_swap(self):
        cache_sizes = []
        for amount in (100, 200, 300, 400, 500):
            self.set_amount_out(blx(amount))
            result = await self.client.pool.swap(str(amount), self.config.blx)
            self.assertTrue(result.confirmed)
            cache_sizes.append(len(self.client.cache))

        quote_reads = [call for call in self.ledger.reads if call.function == "getAmountOut"]
        self.assertEqual(5, len(quote_reads))
        self.assertEqual(
            [blx(amount) for amount in (100, 200, 300, 400, 500)],
            [call.args[0] for call in quote_reads],
        )
        self.assertEqual(1, len(set(cache_sizes)), cache_sizes)

    async def test_swap_without_authorization(self):
        self.ledger.set_view(self.allowance_call(self.config.blx), blx(1_000))

        result = await self.client.pool.swap("1000", self.config.blx, slippage_bps=0)

        self.assertTrue(result.confirmed)
        self.assertEqual(["swapExactTokensForTokens"], self.ledger.submitted_functions())

    async def test_retry_after_failed_swap_skips_confirmed_authorization(self):
        self.ledger.reverts["swapExactTokensForTokens"] = "slippage"
        result = await self.client.pool.swap("1000", self.config.blx)
        self.assertEqual(SequenceStatus.FAILED, result.status)

        del self.ledger.reverts["swapExactTokensForTokens"]
        result = await self.client.pool.swap("1000", self.config.blx)
        self.assertTrue(result.confirmed)
        self.assertEqual(
            ["approve", "swapExactTokensForTokens", "swapExactTokensForTokens"],
            self.ledger.submitted_functions(),
        )

    async def test_swap_preflight_checks(self):
        with self.subTest("invalid amount"):
            for amount in ["abc", "-1", "1.0000000000000000001"]:
                with self.assertRaises(InvalidAmount):
                    await self.client.pool.swap(amount, self.config.blx)

        with self.subTest("zero amount"):
            with self.assertRaises(InvalidAmount):
                await self.client.pool.swap("0", self.config.blx)

        with self.subTest("insufficient balance"):
            with self.assertRaises(InsufficientBalance) as err:
                await self.client.pool.swap("10000.5", self.config.blx)
            self.assertEqual(blx(10_000), err.exception.available)

        with self.subTest("trading disabled"):
            self.ledger.set_view(pool.TradingEnabled(self.pool), False)
            with self.assertRaises(TradingDisabled):
                await self.client.pool.swap("1000", self.config.blx)

        with self.subTest("wrong network"):
            self.ledger.chain = 1
            with self.assertRaises(WrongNetwork):
                await self.client.pool.swap("1000", self.config.blx)
            self.ledger.chain = self.config.chain_id

        with self.subTest("no account"):
            self.client.disconnect()
            with self.assertRaises(AccountNotConnected):
                await self.client.pool.swap("1000", self.config.blx)

        self.assertEqual([], self.ledger.submitted)

    async def test_swap_already_in_progress(self):
        self.ledger.hold_confirmations = True
        task = asyncio.create_task(self.client.pool.swap("1000", self.config.blx))
        await self.ledger.awaiting_confirmation.wait()

        with self.assertRaises(AlreadyInProgress):
            await self.client.pool.swap("1000", self.config.blx)

        self.ledger.release()
        result = await task
        self.assertTrue(result.confirmed)
        self.assertEqual(
            ["approve", "swapExactTokensForTokens"], self.ledger.submitted_functions()
        )

    async def test_add_liquidity_approves_both_assets(self):
        result = await self.client.pool.add_liquidity("100", "200")

        self.assertTrue(result.confirmed)
        self.assertEqual(
            ["approve", "approve", "addLiquidity"], self.ledger.submitted_functions()
        )
        self.assertEqual(
            [self.config.blx.address, self.config.usdc.address],
            [call.contract for call, _ in self.ledger.submitted[:2]],
        )
        add_liquidity, _ = self.ledger.submitted[2]
        self.assertEqual(
            (blx(100), blx(200), blx(99), blx(198), ALICE), add_liquidity.args
        )

    async def test_add_liquidity_only_approves_missing_allowance(self):
        self.ledger.set_view(self.allowance_call(self.config.usdc), blx(1_000))
        result = await self.client.pool.add_liquidity("100", "200", slippage_bps=0)
        self.assertTrue(result.confirmed)
        self.assertEqual(["approve", "addLiquidity"], self.ledger.submitted_functions())
        self.assertEqual(self.config.blx.address, self.ledger.submitted[0][0].contract)

    async def test_failed_first_authorization_aborts_add_liquidity(self):
        self.ledger.reverts["approve"] = "denied"
        result = await self.client.pool.add_liquidity("100", "200")
        self.assertEqual(SequenceStatus.FAILED, result.status)
        self.assertEqual(["approve"], self.ledger.submitted_functions())

    async def test_remove_liquidity(self):
        result = await self.client.pool.remove_liquidity(40)

        self.assertTrue(result.confirmed)
        self.assertEqual(["removeLiquidity"], self.ledger.submitted_functions())
        remove, _ = self.ledger.submitted[0]
        # 10 of 1,000 LP tokens -> 1% of each reserve, less 1% slippage
        self.assertEqual((blx(10), blx(9_900), blx(9_900), ALICE), remove.args)

        with self.subTest("invalid percent"):
            with self.assertRaises(ValueError):
                await self.client.pool.remove_liquidity(0)

        with self.subTest("no liquidity"):
            self.ledger.set_view(pool.LiquidityBalance(self.pool, ALICE), 0)
            self.client.cache.invalidate_contract(self.pool.address)
            with self.assertRaises(InsufficientBalance):
                await self.client.pool.remove_liquidity(100)

    async def test_pool_stats(self):
        stats = await self.client.pool.pool_stats()
        self.assertEqual(ReservePair(*RESERVES), stats.reserves)
        self.assertEqual(blx(1_000), stats.total_supply.base_units)
        self.assertEqual(30, stats.swap_fee_bps)
        self.assertTrue(stats.trading_enabled)
        self.assertEqual(Decimal(2_000_000), stats.total_liquidity_value)
        self.assertEqual(Decimal(1), stats.token_ratio)

    async def test_user_pool_share(self):
        share = await self.client.pool.user_pool_share()
        self.assertEqual(Decimal("2.5"), share.share_percent)
        self.assertEqual(Amount(self.pool.lp_token, blx(25)), share.lp_balance)
        self.assertEqual(blx(25_000), share.amount0.base_units)
        self.assertEqual(blx(25_000), share.amount1.base_units)

        with self.subTest("empty pool"):
            self.ledger.set_view(pool.TotalSupply(self.pool), 0)
            self.client.cache.invalidate_contract(self.pool.address)
            share = await self.client.pool.user_pool_share()
            self.assertEqual(Decimal(0), share.share_percent)

        with self.subTest("no account"):
            self.client.disconnect()
            with self.assertRaises(AccountNotConnected):
                await self.client.pool.user_pool_share()


if __name__ == "__main__":
    unittest.main()
