"""
BLX/USDC constant product pool calls
"""
from dataclasses import dataclass
from typing import Any

from blume.contracts import ContractRead, ContractWrite, check_asset
from blume.ledger import ContractCall
from blume.model import Address, Amount, Asset, ReservePair, BASIS_POINTS

LP_TOKEN_DECIMALS = 18


@dataclass(slots=True, frozen=True)
class PoolContract:
    """
    Pool deployment: the pool contract is also the LP token contract.
    """

    address: Address
    token0: Asset
    token1: Asset

    @property
    def lp_token(self) -> Asset:
        return Asset(
            symbol=f"{self.token0.symbol}-{self.token1.symbol}-LP",
            decimals=LP_TOKEN_DECIMALS,
            address=self.address,
            name="Blume LP",
        )

    def zero_for_one(self, asset_in: Asset) -> bool:
        """
        :return: True when swapping token0 for token1
        :raises ValueError: if the asset is not traded by the pool
        """
        if asset_in == self.token0:
            return True
        if asset_in == self.token1:
            return False
        raise ValueError(f"asset is not traded by the pool: {asset_in.symbol}")

    def counter_asset(self, asset_in: Asset) -> Asset:
        return self.token1 if self.zero_for_one(asset_in) else self.token0


@dataclass(slots=True, frozen=True)
class GetReserves(ContractRead[ReservePair]):
    pool: PoolContract

    def to_call(self) -> ContractCall:
        return ContractCall(self.pool.address, "getReserves")

    def decode(self, data: Any) -> ReservePair:
        return ReservePair.from_data(data)


@dataclass(slots=True, frozen=True)
class TotalSupply(ContractRead[Amount]):
    """
    LP token total supply
    """

    pool: PoolContract

    def to_call(self) -> ContractCall:
        return ContractCall(self.pool.address, "totalSupply")

    def decode(self, data: Any) -> Amount:
        return Amount.from_base_units(data, self.pool.lp_token)


@dataclass(slots=True, frozen=True)
class LiquidityBalance(ContractRead[Amount]):
    """
    Account's LP token balance
    """

    pool: PoolContract
    account: Address

    def to_call(self) -> ContractCall:
        return ContractCall(self.pool.address, "balanceOf", (self.account,))

    def decode(self, data: Any) -> Amount:
        return Amount.from_base_units(data, self.pool.lp_token)


@dataclass(slots=True, frozen=True)
class SwapFee(ContractRead[int]):
    """
    Swap fee in basis points
    """

    pool: PoolContract

    def to_call(self) -> ContractCall:
        return ContractCall(self.pool.address, "swapFee")

    def decode(self, data: Any) -> int:
        fee_bps = int(data)
        if not 0 <= fee_bps <= BASIS_POINTS:
            raise ValueError(f"swap fee out of range: {fee_bps}")
        return fee_bps


@dataclass(slots=True, frozen=True)
class TradingEnabled(ContractRead[bool]):
    pool: PoolContract

    def to_call(self) -> ContractCall:
        return ContractCall(self.pool.address, "tradingEnabled")

    def decode(self, data: Any) -> bool:
        return bool(data)


@dataclass(slots=True, frozen=True)
class GetAmountOut(ContractRead[Amount]):
    """
    Ledger swap quote for the reserves observed by the caller
    """

    pool: PoolContract
    amount_in: Amount
    reserves: ReservePair

    def to_call(self) -> ContractCall:
        reserve_in, reserve_out = self.reserves.ordered(
            self.pool.zero_for_one(self.amount_in.asset)
        )
        return ContractCall(
            self.pool.address,
            "getAmountOut",
            (self.amount_in.base_units, reserve_in, reserve_out),
        )

    def decode(self, data: Any) -> Amount:
        return Amount.from_base_units(data, self.pool.counter_asset(self.amount_in.asset))


@dataclass(slots=True, frozen=True)
class SwapExactTokensForTokens(ContractWrite):
    pool: PoolContract
    amount_in: Amount
    min_amount_out: Amount
    recipient: Address

    def __post_init__(self):
        check_asset(
            self.min_amount_out,
            self.pool.counter_asset(self.amount_in.asset),
            "min_amount_out",
        )
        if self.amount_in.is_zero():
            raise ValueError("amount_in must be greater than zero")

    @property
    def zero_for_one(self) -> bool:
        return self.pool.zero_for_one(self.amount_in.asset)

    def to_call(self) -> ContractCall:
        return ContractCall(
            self.pool.address,
            "swapExactTokensForTokens",
            (
                self.amount_in.base_units,
                self.min_amount_out.base_units,
                self.zero_for_one,
                self.recipient,
            ),
        )


@dataclass(slots=True, frozen=True)
class AddLiquidity(ContractWrite):
    pool: PoolContract
    amount0_desired: Amount
    amount1_desired: Amount
    amount0_min: Amount
    amount1_min: Amount
    recipient: Address

    def __post_init__(self):
        check_asset(self.amount0_desired, self.pool.token0, "amount0_desired")
        check_asset(self.amount0_min, self.pool.token0, "amount0_min")
        check_asset(self.amount1_desired, self.pool.token1, "amount1_desired")
        check_asset(self.amount1_min, self.pool.token1, "amount1_min")
        if self.amount0_min.base_units > self.amount0_desired.base_units:
            raise ValueError("amount0_min must not exceed amount0_desired")
        if self.amount1_min.base_units > self.amount1_desired.base_units:
            raise ValueError("amount1_min must not exceed amount1_desired")

    def to_call(self) -> ContractCall:
        return ContractCall(
            self.pool.address,
            "addLiquidity",
            (
                self.amount0_desired.base_units,
                self.amount1_desired.base_units,
                self.amount0_min.base_units,
                self.amount1_min.base_units,
                self.recipient,
            ),
        )


@dataclass(slots=True, frozen=True)
class RemoveLiquidity(ContractWrite):
    pool: PoolContract
    liquidity: Amount
    amount0_min: Amount
    amount1_min: Amount
    recipient: Address

    def __post_init__(self):
        check_asset(self.liquidity, self.pool.lp_token, "liquidity")
        check_asset(self.amount0_min, self.pool.token0, "amount0_min")
        check_asset(self.amount1_min, self.pool.token1, "amount1_min")
        if self.liquidity.is_zero():
            raise ValueError("liquidity must be greater than zero")

    def to_call(self) -> ContractCall:
        return ContractCall(
            self.pool.address,
            "removeLiquidity",
            (
                self.liquidity.base_units,
                self.amount0_min.base_units,
                self.amount1_min.base_units,
                self.recipient,
            ),
        )
