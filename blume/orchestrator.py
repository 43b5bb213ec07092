"""
Transaction orchestrator

Submits a transaction sequence, i.e., zero or more authorizations followed by the action that depends on them, and
watches each transaction for confirmation before the next one is submitted.

State machine
-------------
IDLE -> SUBMITTING(kind) -> AWAITING_CONFIRMATION(txn_hash, kind) -> CONFIRMED(kind) | FAILED(kind, error)

- CONFIRMED(authorization) -> SUBMITTING(next step), using the parameters captured when the sequence was requested
- CONFIRMED(action) -> IDLE
- FAILED(*) -> IDLE - a failed authorization aborts the sequence, i.e., the action is never submitted

Only one sequence may be outstanding per orchestrator. Requests made while a sequence is outstanding are rejected
with AlreadyInProgress - they are never queued.
"""
import asyncio
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from typing import Callable, Awaitable, Sequence

from reactivex import Observable
from reactivex.subject import BehaviorSubject
from ulid import ULID

from blume.contracts import ContractWrite
from blume.core.logging import get_logger
from blume.errors import (
    AlreadyInProgress,
    BlumeError,
    TransactionRejected,
    TransactionReverted,
    handle_ledger_errors,
)
from blume.ledger import ContractCall, Ledger
from blume.model import Address, TxnHash, TransactionReceipt


class SequenceId(ULID):
    """
    Unique transaction sequence ID
    """


class TransactionKind(Enum):
    AUTHORIZATION = "authorization"
    ACTION = "action"


class Phase(IntEnum):
    IDLE = auto()
    SUBMITTING = auto()
    AWAITING_CONFIRMATION = auto()
    CONFIRMED = auto()
    FAILED = auto()


@dataclass(slots=True, frozen=True)
class OrchestratorState:
    """
    Published on each state transition
    """

    phase: Phase
    kind: TransactionKind | None = None
    txn_hash: TxnHash | None = None
    error: BlumeError | None = None
    sequence_id: SequenceId | None = None

    @property
    def in_progress(self) -> bool:
        return self.phase in (Phase.SUBMITTING, Phase.AWAITING_CONFIRMATION)


@dataclass(slots=True)
class PendingTransaction:
    """
    Transaction owned by the orchestrator from submission until its terminal phase has been observed
    """

    sequence_id: SequenceId
    kind: TransactionKind
    call: ContractCall
    # submitted once this transaction is confirmed
    dependent_action: ContractCall | None = None
    txn_hash: TxnHash | None = None
    phase: Phase = Phase.SUBMITTING


class SequenceStatus(Enum):
    CONFIRMED = "confirmed"
    FAILED = "failed"
    # the watch was abandoned - transactions that were already broadcast are not cancelled
    ABANDONED = "abandoned"


@dataclass(slots=True, frozen=True)
class SequenceResult:
    """
    Terminal state of a transaction sequence
    """

    sequence_id: SequenceId
    status: SequenceStatus
    receipts: tuple[TransactionReceipt, ...] = field(default_factory=tuple)
    error: BlumeError | None = None
    # kind of the step that failed
    failed_kind: TransactionKind | None = None

    @property
    def confirmed(self) -> bool:
        return self.status == SequenceStatus.CONFIRMED


OnConfirmed = Callable[[ContractCall, TransactionReceipt], None]


class TransactionOrchestrator:
    """
    Sequences dependent ledger transactions for a single flow, e.g., approve -> stake.
    """

    def __init__(
        self,
        name: str,
        ledger: Ledger,
        on_confirmed: OnConfirmed | None = None,
        before_submit: Callable[[], Awaitable[None]] | None = None,
    ):
        """
        :param name: flow name, used for logging
        :param on_confirmed: invoked for each confirmed transaction, e.g., to invalidate affected queries
        :param before_submit: pre-flight check run before each submission, e.g., network check.
                              Exceptions fail the sequence.
        """
        self.name = name
        self._ledger = ledger
        self._on_confirmed = on_confirmed
        self._before_submit = before_submit
        self._logger = get_logger(self, name)

        self._subject: BehaviorSubject[OrchestratorState] = BehaviorSubject(
            OrchestratorState(Phase.IDLE)
        )
        self._busy = False
        self._task: asyncio.Task[SequenceResult] | None = None
        self._pending: PendingTransaction | None = None
        self._abandoned = False
        self._last_result: SequenceResult | None = None

    @property
    def state(self) -> OrchestratorState:
        return self._subject.value

    @property
    def observable(self) -> Observable[OrchestratorState]:
        """
        Used to monitor state transitions
        """
        return self._subject

    @property
    def in_progress(self) -> bool:
        return self._busy

    @property
    def pending(self) -> PendingTransaction | None:
        """
        :return: transaction currently being submitted or watched
        """
        return self._pending

    @property
    def last_result(self) -> SequenceResult | None:
        """
        :return: terminal state of the most recent sequence - cleared when the next sequence is submitted
        """
        return self._last_result

    async def execute(
        self,
        action: ContractWrite,
        sender: Address,
        authorizations: Sequence[ContractWrite] = (),
    ) -> SequenceResult:
        """
        Submits the authorizations, one at a time, and then the action. Each transaction is submitted only after its
        predecessor has been confirmed.

        The call records are immutable - the parameters captured here are the ones submitted.

        :raises AlreadyInProgress: if a sequence is outstanding. The outstanding sequence is not affected.
        :return: terminal state of the sequence
        """
        if self._busy:
            raise AlreadyInProgress(self.name)
        self._busy = True
        self._abandoned = False
        self._last_result = None

        sequence_id = SequenceId()
        steps = [
            (TransactionKind.AUTHORIZATION, authorization.to_call())
            for authorization in authorizations
        ]
        steps.append((TransactionKind.ACTION, action.to_call()))
        self._logger.info(
            "sequence %s: %s", sequence_id, " -> ".join(str(call) for _, call in steps)
        )

        self._task = asyncio.create_task(self._run(sequence_id, steps, sender))
        try:
            result = await self._task
        except asyncio.CancelledError:
            if not self._abandoned:
                raise
            self._logger.info("sequence %s: abandoned", sequence_id)
            result = SequenceResult(sequence_id, SequenceStatus.ABANDONED)
        finally:
            self._task = None
            self._pending = None
            self._busy = False
            self._publish(OrchestratorState(Phase.IDLE))

        self._last_result = result
        return result

    def abandon(self) -> bool:
        """
        Stops watching the outstanding sequence. Transactions that were already broadcast cannot be cancelled, but no
        further transactions in the sequence will be submitted.

        :return: True if an outstanding sequence was abandoned
        """
        if self._task is None or self._task.done():
            return False
        self._abandoned = True
        self._task.cancel()
        return True

    async def _run(
        self,
        sequence_id: SequenceId,
        steps: list[tuple[TransactionKind, ContractCall]],
        sender: Address,
    ) -> SequenceResult:
        receipts: list[TransactionReceipt] = []
        for i, (kind, call) in enumerate(steps):
            pending = PendingTransaction(
                sequence_id=sequence_id,
                kind=kind,
                call=call,
                dependent_action=steps[i + 1][1] if i + 1 < len(steps) else None,
            )
            self._pending = pending
            self._transition(pending, Phase.SUBMITTING)
            try:
                receipt = await self._submit_and_confirm(pending, sender)
            except Exception as err:  # pylint: disable=broad-exception-caught
                if not isinstance(err, BlumeError):
                    self._logger.exception("sequence %s: %s failed", sequence_id, call)
                    err = TransactionRejected(str(err) or err.__class__.__name__)
                self._transition(pending, Phase.FAILED, err)
                if pending.dependent_action:
                    self._logger.info(
                        "sequence %s: aborted - not submitting %s",
                        sequence_id,
                        pending.dependent_action,
                    )
                return SequenceResult(
                    sequence_id,
                    SequenceStatus.FAILED,
                    tuple(receipts),
                    err,
                    kind,
                )

            receipts.append(receipt)
            self._transition(pending, Phase.CONFIRMED)
            if self._on_confirmed:
                self._on_confirmed(call, receipt)

        return SequenceResult(sequence_id, SequenceStatus.CONFIRMED, tuple(receipts))

    async def _submit_and_confirm(
        self, pending: PendingTransaction, sender: Address
    ) -> TransactionReceipt:
        if self._before_submit:
            await self._before_submit()

        pending.txn_hash = await self._submit(pending.call, sender)
        self._transition(pending, Phase.AWAITING_CONFIRMATION)

        receipt = await self._wait_for_receipt(pending.txn_hash)
        if not receipt.succeeded:
            raise TransactionReverted(receipt.revert_reason, receipt.txn_hash)
        return receipt

    @handle_ledger_errors
    async def _submit(self, call: ContractCall, sender: Address) -> TxnHash:
        return await self._ledger.submit(call, sender)

    @handle_ledger_errors
    async def _wait_for_receipt(self, txn_hash: TxnHash) -> TransactionReceipt:
        return await self._ledger.wait_for_receipt(txn_hash)

    def _transition(
        self,
        pending: PendingTransaction,
        phase: Phase,
        error: BlumeError | None = None,
    ):
        pending.phase = phase
        state = OrchestratorState(
            phase=phase,
            kind=pending.kind,
            txn_hash=pending.txn_hash,
            error=error,
            sequence_id=pending.sequence_id,
        )
        if error:
            self._logger.warning(
                "state transition: %s -> %s(%s): %s",
                self.state.phase.name,
                phase.name,
                pending.kind.value,
                error,
            )
        else:
            self._logger.info(
                "state transition: %s -> %s(%s) %s",
                self.state.phase.name,
                phase.name,
                pending.kind.value,
                pending.txn_hash or "",
            )
        self._publish(state)

    def _publish(self, state: OrchestratorState):
        self._subject.on_next(state)
