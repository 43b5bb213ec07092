"""
Chain query adapter

Names every ledger query the Blume protocol surface uses. All queries are served from the shared QueryCache.
Queries that need the connected account are disabled while no account is connected.
"""
from blume.config import BlumeConfig
from blume.contracts import erc20, liquid_staking, pool, tiered_staking, vault
from blume.contracts.tiered_staking import LockOption
from blume.contracts.vault import VaultLockPeriod
from blume.ledger import Ledger
from blume.model import (
    Address,
    Amount,
    Asset,
    AllowanceRecord,
    DepositRecord,
    ReservePair,
    StakeRecord,
    WithdrawalSplit,
)
from blume.queries import Query, QueryCache


class ChainQueries:
    """
    Read-only, idempotent ledger queries
    """

    def __init__(self, config: BlumeConfig, ledger: Ledger, cache: QueryCache | None = None):
        self.config = config
        self.cache = cache if cache is not None else QueryCache(ledger)
        self._account: Address | None = None

    @property
    def account(self) -> Address | None:
        return self._account

    @account.setter
    def account(self, account: Address | None):
        self._account = account

    # ==================== ERC-20 ====================

    def token_balance(self, asset: Asset, account: Address | None = None) -> Query[Amount]:
        account = account or self._account
        return self.cache.query(erc20.BalanceOf(asset, account) if account else None)

    def allowance(
        self,
        asset: Asset,
        spender: Address,
        owner: Address | None = None,
    ) -> Query[AllowanceRecord]:
        owner = owner or self._account
        return self.cache.query(erc20.Allowance(asset, owner, spender) if owner else None)

    # ==================== POOL ====================

    def reserves(self) -> Query[ReservePair]:
        return self.cache.query(pool.GetReserves(self.config.pool))

    def total_liquidity(self) -> Query[Amount]:
        """
        LP token total supply
        """
        return self.cache.query(pool.TotalSupply(self.config.pool))

    def liquidity_balance(self, account: Address | None = None) -> Query[Amount]:
        account = account or self._account
        return self.cache.query(
            pool.LiquidityBalance(self.config.pool, account) if account else None
        )

    def swap_fee(self) -> Query[int]:
        return self.cache.query(pool.SwapFee(self.config.pool))

    def trading_enabled(self) -> Query[bool]:
        return self.cache.query(pool.TradingEnabled(self.config.pool))

    def amount_out(self, amount_in: Amount, reserves: ReservePair | None) -> Query[Amount]:
        """
        Ledger quote. Disabled until the reserves are known and the input amount is positive.

        Quotes are keyed by the input amount and reserves, so they are not cached.
        """
        if reserves is None or amount_in.is_zero():
            return Query.disabled()
        return self.cache.uncached(pool.GetAmountOut(self.config.pool, amount_in, reserves))

    # ==================== TIERED STAKING ====================

    def tiered_stakes(self, account: Address | None = None) -> Query[list[StakeRecord]]:
        account = account or self._account
        return self.cache.query(
            tiered_staking.GetUserStakesInfo(self.config.tiered_staking, account)
            if account
            else None
        )

    def tiered_stakes_length(self, account: Address | None = None) -> Query[int]:
        account = account or self._account
        return self.cache.query(
            tiered_staking.StakesLength(self.config.tiered_staking, account)
            if account
            else None
        )

    def tiered_pending_reward(
        self,
        index: int | None,
        account: Address | None = None,
    ) -> Query[Amount]:
        account = account or self._account
        return self.cache.query(
            tiered_staking.PendingReward(self.config.tiered_staking, account, index)
            if account and index is not None
            else None
        )

    def tiered_apr(self, lock: LockOption) -> Query[int]:
        return self.cache.query(
            tiered_staking.AprConstant(self.config.tiered_staking, lock)
        )

    def tiered_total_rewards(self) -> Query[Amount]:
        return self.cache.query(tiered_staking.TotalRewards(self.config.tiered_staking))

    # ==================== LIQUID STAKING ====================

    def liquid_total_staked(self) -> Query[Amount]:
        return self.cache.query(liquid_staking.TotalStaked(self.config.liquid_staking))

    def liquid_total_rewards(self) -> Query[Amount]:
        return self.cache.query(tiered_staking.TotalRewards(self.config.liquid_staking))

    def st_token(self) -> Query[Address]:
        return self.cache.query(liquid_staking.StToken(self.config.liquid_staking))

    def staked_blx_balance(self, account: Address | None = None) -> Query[Amount]:
        return self.token_balance(self.config.st_blx, account)

    def liquid_stake(self, index: int | None, account: Address | None = None) -> Query[StakeRecord]:
        account = account or self._account
        return self.cache.query(
            liquid_staking.Stakes(self.config.liquid_staking, account, index)
            if account and index is not None
            else None
        )

    def liquid_pending_reward(
        self,
        index: int | None,
        account: Address | None = None,
    ) -> Query[Amount]:
        account = account or self._account
        return self.cache.query(
            tiered_staking.PendingReward(self.config.liquid_staking, account, index)
            if account and index is not None
            else None
        )

    # ==================== VAULT ====================

    def vault_deposits(self, account: Address | None = None) -> Query[list[DepositRecord]]:
        account = account or self._account
        return self.cache.query(
            vault.GetUserDeposits(self.config.vault, account) if account else None
        )

    def vault_balance(self, account: Address | None = None) -> Query[Amount]:
        account = account or self._account
        return self.cache.query(
            vault.TotalUserBalance(self.config.vault, account) if account else None
        )

    def total_vault_balance(self) -> Query[Amount]:
        return self.cache.query(vault.TotalVaultBalance(self.config.vault))

    def total_auto_staked(self) -> Query[Amount]:
        return self.cache.query(vault.TotalAutoStaked(self.config.vault))

    def lock_period(self, period: VaultLockPeriod) -> Query[int]:
        return self.cache.query(vault.LockPeriodConstant(self.config.vault, period))

    def deposit_locked(self, index: int | None, account: Address | None = None) -> Query[bool]:
        account = account or self._account
        return self.cache.query(
            vault.IsDepositLocked(self.config.vault, account, index)
            if account and index is not None
            else None
        )

    def withdrawal_split(
        self,
        index: int | None,
        account: Address | None = None,
    ) -> Query[WithdrawalSplit]:
        account = account or self._account
        return self.cache.query(
            vault.CalculateWithdrawalAmount(self.config.vault, account, index)
            if account and index is not None
            else None
        )

    def withdrawal_fee(self) -> Query[int]:
        return self.cache.query(vault.VaultUintConstant(self.config.vault, "withdrawalFee"))

    def early_withdrawal_fee(self) -> Query[int]:
        return self.cache.query(
            vault.VaultUintConstant(self.config.vault, "earlyWithdrawalFee")
        )

    def vault_paused(self) -> Query[bool]:
        return self.cache.query(vault.Paused(self.config.vault))
