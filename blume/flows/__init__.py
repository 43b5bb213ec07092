"""
Protocol flows

A flow validates a user request, runs the pre-flight checks, and hands the resulting transaction sequence to the
orchestrator that owns the flow's form.

Pre-flight checks run in this order, and each one blocks submission:
1. network - WrongNetwork
2. connected account - AccountNotConnected
3. decimal codec - InvalidAmount
4. balance - InsufficientBalance
5. allowance - re-queried from the ledger, then evaluated by the authorization gate
"""
from typing import Any, Iterable, TypeVar

from blume.authorization import needs_authorization
from blume.chain import ChainQueries
from blume.contracts.erc20 import Approve
from blume.core.logging import get_logger
from blume.errors import AccountNotConnected, InsufficientBalance, InvalidAmount
from blume.ledger import ContractCall, Ledger
from blume.model import Address, Amount, Asset, TransactionReceipt
from blume.network import NetworkGuard
from blume.orchestrator import SequenceResult, TransactionOrchestrator
from blume.queries import Query

T = TypeVar("T")


async def fetch(query: Query[T]) -> T:
    """
    Refreshes the query

    :raises BlumeError: the query's error, if the refresh failed
    :raises AccountNotConnected: if the query is disabled
    """
    if not query.enabled:
        raise AccountNotConnected()
    state = await query.refresh()
    if state.error:
        raise state.error
    return state.value  # type: ignore


class Flow:
    """
    Base class for protocol flows
    """

    def __init__(
        self,
        ledger: Ledger,
        queries: ChainQueries,
        network: NetworkGuard,
    ):
        self._ledger = ledger
        self.queries = queries
        self.config = queries.config
        self.network = network
        self._logger = get_logger(self)
        self._orchestrators: dict[str, TransactionOrchestrator] = {}

    @property
    def orchestrators(self) -> dict[str, TransactionOrchestrator]:
        return dict(self._orchestrators)

    def _orchestrator(self, name: str) -> TransactionOrchestrator:
        if name not in self._orchestrators:
            self._orchestrators[name] = TransactionOrchestrator(
                name,
                self._ledger,
                on_confirmed=self._on_confirmed,
                before_submit=self.network.ensure,
            )
        return self._orchestrators[name]

    def abandon_all(self) -> int:
        """
        Abandons all outstanding sequences

        :return: number of sequences abandoned
        """
        return sum(1 for orchestrator in self._orchestrators.values() if orchestrator.abandon())

    def _affected_contracts(self, call: ContractCall) -> Iterable[Address]:
        """
        Contracts whose views are affected by the confirmed call - subclasses may extend.
        """
        return (call.contract,)

    def _on_confirmed(self, call: ContractCall, receipt: TransactionReceipt):
        """
        Invalidates the snapshots that the confirmed transaction made stale. Snapshots are never patched locally.
        """
        cache = self.queries.cache
        if call.function == "approve":
            token = call.contract.lower()
            spender = call.args[0].lower()
            cache.invalidate(
                lambda key: key.function == "allowance"
                and key.contract.lower() == token
                and key.args[1].lower() == spender
            )
            return

        contracts = {contract.lower() for contract in self._affected_contracts(call)}

        def is_stale(key: ContractCall) -> bool:
            if key.contract.lower() in contracts:
                return True
            if key.function == "balanceOf":
                return True
            return key.function == "allowance" and key.args[1].lower() in contracts

        invalidated = cache.invalidate(is_stale)
        self._logger.debug(
            "%s confirmed in %s: invalidated %s queries",
            call.function,
            receipt.txn_hash,
            len(invalidated),
        )

    async def _after_sequence(self, result: SequenceResult) -> SequenceResult:
        """
        Refreshes the snapshots invalidated by the sequence
        """
        if result.receipts:
            await self.queries.cache.refresh_stale()
        return result

    async def _preflight(self) -> Address:
        """
        :return: connected account
        """
        await self.network.ensure()
        account = self.queries.account
        if account is None:
            raise AccountNotConnected()
        return account

    def _parse_amount(self, display: str, asset: Asset) -> Amount:
        """
        :raises InvalidAmount: if the amount is malformed or zero
        """
        amount = Amount.parse(display, asset)
        if amount.is_zero():
            raise InvalidAmount(f"amount must be greater than zero: {display!r}")
        return amount

    async def _check_balance(self, amount: Amount, account: Address):
        balance = await fetch(self.queries.token_balance(amount.asset, account))
        if balance.base_units < amount.base_units:
            raise InsufficientBalance(
                amount.asset.symbol, amount.base_units, balance.base_units
            )

    async def _authorizations(
        self,
        amounts: Iterable[Amount],
        spender: Address,
        account: Address,
    ) -> list[Approve]:
        """
        Re-queries the allowances and returns the approvals that must be confirmed before the action.
        An allowance that cannot be queried is treated as unknown, which requires authorization.
        """
        approvals = []
        for amount in amounts:
            state = await self.queries.allowance(amount.asset, spender, account).refresh()
            current: Any = state.value.amount.base_units if state.value and not state.error else None
            if needs_authorization(amount.base_units, current):
                self._logger.info(
                    "authorization required: %s for %s (allowance=%s)",
                    amount,
                    spender,
                    current,
                )
                approvals.append(Approve(spender, amount))
        return approvals
