"""
BLX Vault flows
"""
from datetime import datetime, UTC
from typing import Iterable

from blume import calculators
from blume.contracts import vault
from blume.contracts.vault import VaultContract, VaultLockPeriod
from blume.errors import DepositLocked
from blume.flows import Flow, fetch
from blume.ledger import ContractCall
from blume.model import Address, DepositRecord, WithdrawalSplit
from blume.orchestrator import SequenceResult


class VaultFlow(Flow):
    """
    Deposit form and deposit management
    """

    @property
    def vault(self) -> VaultContract:
        return self.config.vault

    def _affected_contracts(self, call: ContractCall) -> Iterable[Address]:
        # auto-staked deposits are staked by the vault
        return (
            call.contract,
            self.config.contracts.tiered_staking,
            self.config.contracts.liquid_staking,
        )

    async def lock_period_seconds(self, period: VaultLockPeriod) -> int:
        """
        Lock period reported by the vault. The default is used while the ledger value is unavailable.
        """
        state = await self.queries.lock_period(period).refresh()
        if state.value is None:
            self._logger.info(
                "using default lock period: %s = %s", period.constant, period.default_seconds
            )
            return period.default_seconds
        return state.value

    async def deposit(
        self,
        amount: str,
        lock_period: VaultLockPeriod = VaultLockPeriod.NO_LOCK,
        auto_stake: bool = False,
    ) -> SequenceResult:
        """
        Deposits BLX into the vault. BLX is approved for the vault first when the allowance does not cover the amount.
        """
        account = await self._preflight()
        deposit_amount = self._parse_amount(amount, self.vault.asset)
        await self._check_balance(deposit_amount, account)

        action = vault.Deposit(
            self.vault,
            deposit_amount,
            await self.lock_period_seconds(lock_period),
            auto_stake,
        )
        authorizations = await self._authorizations(
            [deposit_amount], self.vault.address, account
        )
        result = await self._orchestrator("deposit").execute(
            action, account, authorizations
        )
        return await self._after_sequence(result)

    async def deposits(self) -> list[DepositRecord]:
        """
        :raises AccountNotConnected: if no account is connected
        """
        return await fetch(self.queries.vault_deposits())

    async def deposit_record(self, index: int) -> DepositRecord:
        """
        :raises IndexError: if the account has no deposit at the index
        """
        deposits = await self.deposits()
        if not 0 <= index < len(deposits):
            raise IndexError(f"deposit does not exist: {index}")
        return deposits[index]

    async def withdrawal_split(self, index: int) -> WithdrawalSplit:
        """
        Net amount and fee, as computed by the vault
        """
        return await fetch(self.queries.withdrawal_split(index))

    async def withdraw(self, index: int, now: datetime | None = None) -> SequenceResult:
        """
        :raises DepositLocked: if the deposit's lock period has not elapsed
        :raises ValueError: if the deposit has already been withdrawn
        """
        account = await self._preflight()
        deposit = await self.deposit_record(index)
        if deposit.withdrawn:
            raise ValueError(f"deposit has already been withdrawn: {index}")
        if not calculators.withdrawal_permitted(deposit, now or datetime.now(UTC)):
            raise DepositLocked(index)

        result = await self._orchestrator("manage").execute(
            vault.Withdraw(self.vault, index), account
        )
        return await self._after_sequence(result)

    async def toggle_auto_stake(self, index: int) -> SequenceResult:
        account = await self._preflight()
        result = await self._orchestrator("manage").execute(
            vault.ToggleAutoStake(self.vault, index), account
        )
        return await self._after_sequence(result)

    async def emergency_withdraw(self) -> SequenceResult:
        """
        Withdraws all deposits, ignoring locks. The vault charges its early withdrawal fee.
        """
        account = await self._preflight()
        result = await self._orchestrator("manage").execute(
            vault.EmergencyWithdraw(self.vault), account
        )
        return await self._after_sequence(result)
