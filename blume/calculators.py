"""
Financial calculators

Pure functions over already fetched ledger state. Amounts are integers in base units.

Values that the ledger owns - payable staking rewards and vault withdrawal fees - are never derived here. The reward
projections below are estimates for display only.
"""
from datetime import datetime, timedelta
from decimal import Decimal

from blume import codec
from blume.model import BASIS_POINTS, DepositRecord, ReservePair, Asset

SECONDS_PER_DAY = 24 * 60 * 60
SECONDS_PER_HOUR = 60 * 60


def _check_non_negative(**values: int):
    for name, value in values.items():
        if value < 0:
            raise ValueError(f"{name} must not be negative: {value}")


def _check_bps(name: str, bps: int):
    if not 0 <= bps <= BASIS_POINTS:
        raise ValueError(f"{name} must be within [0, {BASIS_POINTS}]: {bps}")


def swap_amount_out(amount_in: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    """
    Constant product swap output after the fee is deducted from the input.

        amount_out = (amount_in * (10000 - fee_bps) * reserve_out) / (reserve_in * 10000 + amount_in * (10000 - fee_bps))

    Integer division truncates, matching the pool contract, so quoted and executed amounts agree.

    :return: 0 if there is no liquidity to price against
    """
    _check_non_negative(amount_in=amount_in, reserve_in=reserve_in, reserve_out=reserve_out)
    _check_bps("fee_bps", fee_bps)

    if reserve_in == 0 or reserve_out == 0:
        return 0
    amount_in_with_fee = amount_in * (BASIS_POINTS - fee_bps)
    return (amount_in_with_fee * reserve_out) // (
        reserve_in * BASIS_POINTS + amount_in_with_fee
    )


def min_amount_out(amount_out: int, slippage_bps: int) -> int:
    """
    Minimum acceptable output for the slippage tolerance, rounded down.
    """
    _check_non_negative(amount_out=amount_out)
    _check_bps("slippage_bps", slippage_bps)
    return amount_out * (BASIS_POINTS - slippage_bps) // BASIS_POINTS


def pool_share_percent(user_lp: int, total_supply: int) -> Decimal:
    """
    :return: user_lp / total_supply * 100, or 0 if total supply is 0
    """
    _check_non_negative(user_lp=user_lp, total_supply=total_supply)
    if total_supply == 0:
        return Decimal(0)
    return Decimal(user_lp) * 100 / Decimal(total_supply)


def remove_liquidity_amount(lp_balance: int, percent: int) -> int:
    """
    LP tokens to burn when removing `percent` of the position.
    """
    _check_non_negative(lp_balance=lp_balance)
    if not 0 < percent <= 100:
        raise ValueError(f"percent must be within (0, 100]: {percent}")
    return lp_balance * percent // 100


def total_liquidity_value(reserves: ReservePair, token0: Asset, token1: Asset) -> Decimal:
    """
    Sum of both reserves in display units - assumes 1:1 USD parity between the pool assets.
    """
    return Decimal(codec.to_display(reserves.reserve0, token0)) + Decimal(
        codec.to_display(reserves.reserve1, token1)
    )


def token_ratio(reserves: ReservePair, token0: Asset, token1: Asset) -> Decimal:
    """
    token0 per token1 in display units. Defaults to 1 for an empty pool.
    """
    if reserves.reserve0 == 0 or reserves.reserve1 == 0:
        return Decimal(1)
    return Decimal(codec.to_display(reserves.reserve0, token0)) / Decimal(
        codec.to_display(reserves.reserve1, token1)
    )


def projected_reward(principal: int, apr_bps: int) -> int:
    """
    Reward over a full lock period at the advertised APR: principal * apr_bps / 10000
    """
    _check_non_negative(principal=principal, apr_bps=apr_bps)
    return principal * apr_bps // BASIS_POINTS


def pending_reward_estimate(
    principal: int,
    apr_bps: int,
    start_time: int,
    lock_duration: int,
    now: datetime,
) -> int:
    """
    Linear estimate of the reward accrued so far, capped at the full period reward.

    This is a display estimate only. The ledger's accrual formula is authoritative - use the `pendingReward` query for
    any withdrawal decision.
    """
    full_reward = projected_reward(principal, apr_bps)
    if lock_duration <= 0:
        return full_reward
    elapsed = min(max(int(now.timestamp()) - start_time, 0), lock_duration)
    return principal * apr_bps * elapsed // (BASIS_POINTS * lock_duration)


def lock_time_remaining(unlock_time: int, now: datetime) -> timedelta:
    """
    :param unlock_time: unix timestamp when the lock expires
    :return: zero once unlocked
    """
    remaining = unlock_time - int(now.timestamp())
    return timedelta(seconds=max(remaining, 0))


def format_time_remaining(remaining: timedelta) -> str:
    """
    >>> format_time_remaining(timedelta(days=2, hours=5))
    '2d 5h'
    >>> format_time_remaining(timedelta(hours=3))
    '3h'
    >>> format_time_remaining(timedelta(0))
    'Unlocked'
    """
    seconds = int(remaining.total_seconds())
    if seconds <= 0:
        return "Unlocked"
    days, seconds = divmod(seconds, SECONDS_PER_DAY)
    hours = seconds // SECONDS_PER_HOUR
    if days > 0:
        return f"{days}d {hours}h"
    return f"{hours}h"


def withdrawal_permitted(deposit: DepositRecord, now: datetime) -> bool:
    """
    Used to gate vault withdrawals: the deposit must not have been withdrawn and its lock must have elapsed.

    The withdrawal fee and net amount are reported by the vault - see `CalculateWithdrawalAmount`.
    """
    if deposit.withdrawn:
        return False
    return int(now.timestamp()) >= deposit.lock_until
