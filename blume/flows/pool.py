"""
BLX/USDC pool flows: swap, add liquidity, remove liquidity
"""
import asyncio
from dataclasses import dataclass
from decimal import Decimal

from blume import calculators
from blume.contracts.pool import (
    AddLiquidity,
    RemoveLiquidity,
    SwapExactTokensForTokens,
)
from blume.errors import InsufficientBalance, TradingDisabled
from blume.flows import Flow, fetch
from blume.model import Amount, Asset, ReservePair
from blume.orchestrator import SequenceResult


@dataclass(slots=True, frozen=True)
class SwapQuote:
    amount_in: Amount
    amount_out: Amount
    min_amount_out: Amount
    fee_bps: int
    slippage_bps: int


@dataclass(slots=True, frozen=True)
class PoolStats:
    reserves: ReservePair
    total_supply: Amount
    swap_fee_bps: int
    trading_enabled: bool
    # display units, assuming 1:1 parity between the pool assets
    total_liquidity_value: Decimal
    # token0 per token1
    token_ratio: Decimal


@dataclass(slots=True, frozen=True)
class PoolShare:
    lp_balance: Amount
    share_percent: Decimal
    # pro rata claim on the reserves
    amount0: Amount
    amount1: Amount


class PoolFlow(Flow):
    """
    Swap and liquidity forms. Each form has its own orchestrator.
    """

    @property
    def pool(self):
        return self.config.pool

    def _slippage(self, slippage_bps: int | None) -> int:
        return self.config.slippage_bps if slippage_bps is None else slippage_bps

    async def quote_swap(
        self,
        amount_in: str,
        asset_in: Asset,
        slippage_bps: int | None = None,
    ) -> SwapQuote:
        """
        Local constant product quote against freshly queried reserves and swap fee

        :raises InvalidAmount: if the amount is malformed or zero
        """
        amount = self._parse_amount(amount_in, asset_in)
        reserves, fee_bps = await asyncio.gather(
            fetch(self.queries.reserves()), fetch(self.queries.swap_fee())
        )
        return self._quote(amount, reserves, fee_bps, self._slippage(slippage_bps))

    def _quote(
        self,
        amount_in: Amount,
        reserves: ReservePair,
        fee_bps: int,
        slippage_bps: int,
        amount_out: int | None = None,
    ) -> SwapQuote:
        asset_out = self.pool.counter_asset(amount_in.asset)
        if amount_out is None:
            reserve_in, reserve_out = reserves.ordered(
                self.pool.zero_for_one(amount_in.asset)
            )
            amount_out = calculators.swap_amount_out(
                amount_in.base_units, reserve_in, reserve_out, fee_bps
            )
        return SwapQuote(
            amount_in=amount_in,
            amount_out=Amount(asset_out, amount_out),
            min_amount_out=Amount(
                asset_out, calculators.min_amount_out(amount_out, slippage_bps)
            ),
            fee_bps=fee_bps,
            slippage_bps=slippage_bps,
        )

    async def swap(
        self,
        amount_in: str,
        asset_in: Asset,
        slippage_bps: int | None = None,
    ) -> SequenceResult:
        """
        Swaps an exact input amount. The minimum output is derived from the ledger's quote for the current reserves.

        :raises TradingDisabled: if pool trading is disabled
        :raises AlreadyInProgress: if a swap is outstanding
        """
        account = await self._preflight()
        amount = self._parse_amount(amount_in, asset_in)
        await self._check_balance(amount, account)
        if not await fetch(self.queries.trading_enabled()):
            raise TradingDisabled()

        reserves = await fetch(self.queries.reserves())
        fee_bps = await fetch(self.queries.swap_fee())
        ledger_quote = await fetch(self.queries.amount_out(amount, reserves))
        quote = self._quote(
            amount,
            reserves,
            fee_bps,
            self._slippage(slippage_bps),
            amount_out=ledger_quote.base_units,
        )

        action = SwapExactTokensForTokens(
            pool=self.pool,
            amount_in=amount,
            min_amount_out=quote.min_amount_out,
            recipient=account,
        )
        authorizations = await self._authorizations([amount], self.pool.address, account)
        result = await self._orchestrator("swap").execute(action, account, authorizations)
        return await self._after_sequence(result)

    async def add_liquidity(
        self,
        amount0: str,
        amount1: str,
        slippage_bps: int | None = None,
    ) -> SequenceResult:
        """
        Deposits both pool assets. Both assets may need to be approved first.
        """
        account = await self._preflight()
        desired0 = self._parse_amount(amount0, self.pool.token0)
        desired1 = self._parse_amount(amount1, self.pool.token1)
        await self._check_balance(desired0, account)
        await self._check_balance(desired1, account)

        slippage = self._slippage(slippage_bps)
        action = AddLiquidity(
            pool=self.pool,
            amount0_desired=desired0,
            amount1_desired=desired1,
            amount0_min=Amount(
                desired0.asset,
                calculators.min_amount_out(desired0.base_units, slippage),
            ),
            amount1_min=Amount(
                desired1.asset,
                calculators.min_amount_out(desired1.base_units, slippage),
            ),
            recipient=account,
        )
        authorizations = await self._authorizations(
            [desired0, desired1], self.pool.address, account
        )
        result = await self._orchestrator("add_liquidity").execute(
            action, account, authorizations
        )
        return await self._after_sequence(result)

    async def remove_liquidity(
        self,
        percent: int,
        slippage_bps: int | None = None,
    ) -> SequenceResult:
        """
        Burns `percent` of the account's LP tokens. The pool burns its own LP token, so no approval is required.

        :param percent: (0, 100]
        """
        account = await self._preflight()
        lp_balance = await fetch(self.queries.liquidity_balance(account))
        if lp_balance.is_zero():
            raise InsufficientBalance(lp_balance.asset.symbol, 1, 0)
        liquidity = calculators.remove_liquidity_amount(lp_balance.base_units, percent)
        if liquidity == 0:
            raise InsufficientBalance(lp_balance.asset.symbol, 1, lp_balance.base_units)

        reserves, total_supply = await asyncio.gather(
            fetch(self.queries.reserves()), fetch(self.queries.total_liquidity())
        )
        slippage = self._slippage(slippage_bps)
        amount0, amount1 = self._claim(liquidity, reserves, total_supply.base_units)
        action = RemoveLiquidity(
            pool=self.pool,
            liquidity=Amount(lp_balance.asset, liquidity),
            amount0_min=Amount(
                self.pool.token0, calculators.min_amount_out(amount0, slippage)
            ),
            amount1_min=Amount(
                self.pool.token1, calculators.min_amount_out(amount1, slippage)
            ),
            recipient=account,
        )
        result = await self._orchestrator("remove_liquidity").execute(action, account)
        return await self._after_sequence(result)

    @staticmethod
    def _claim(liquidity: int, reserves: ReservePair, total_supply: int) -> tuple[int, int]:
        if total_supply == 0:
            return 0, 0
        return (
            reserves.reserve0 * liquidity // total_supply,
            reserves.reserve1 * liquidity // total_supply,
        )

    async def pool_stats(self) -> PoolStats:
        reserves, total_supply, fee_bps, trading_enabled = await asyncio.gather(
            fetch(self.queries.reserves()),
            fetch(self.queries.total_liquidity()),
            fetch(self.queries.swap_fee()),
            fetch(self.queries.trading_enabled()),
        )
        return PoolStats(
            reserves=reserves,
            total_supply=total_supply,
            swap_fee_bps=fee_bps,
            trading_enabled=trading_enabled,
            total_liquidity_value=calculators.total_liquidity_value(
                reserves, self.pool.token0, self.pool.token1
            ),
            token_ratio=calculators.token_ratio(
                reserves, self.pool.token0, self.pool.token1
            ),
        )

    async def user_pool_share(self) -> PoolShare:
        """
        :raises AccountNotConnected: if no account is connected
        """
        lp_balance = await fetch(self.queries.liquidity_balance())
        reserves, total_supply = await asyncio.gather(
            fetch(self.queries.reserves()), fetch(self.queries.total_liquidity())
        )
        amount0, amount1 = self._claim(
            lp_balance.base_units, reserves, total_supply.base_units
        )
        return PoolShare(
            lp_balance=lp_balance,
            share_percent=calculators.pool_share_percent(
                lp_balance.base_units, total_supply.base_units
            ),
            amount0=Amount(self.pool.token0, amount0),
            amount1=Amount(self.pool.token1, amount1),
        )
