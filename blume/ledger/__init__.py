"""
Ledger protocol

The ledger wire format and signing are provided by the Ledger implementation, e.g., a JSON-RPC client bound to a
wallet. This package only decides when, and with what arguments, contracts are invoked.
"""
from dataclasses import dataclass
from typing import Protocol, Any

from blume.model import Address, TxnHash, TransactionReceipt


@dataclass(slots=True, frozen=True)
class ContractCall:
    """
    Contract function invocation. Read calls double as query cache keys.
    """

    contract: Address
    function: str
    args: tuple[Any, ...] = ()

    def __str__(self) -> str:
        args = ", ".join(str(arg) for arg in self.args)
        return f"{self.function}({args})@{self.contract}"


class Ledger(Protocol):
    """
    Remote ledger
    """

    async def chain_id(self) -> int:
        """
        :return: chain ID of the network the ledger is connected to
        """
        ...

    async def read(self, call: ContractCall) -> Any:
        """
        Invokes a view function
        """
        ...

    async def submit(self, call: ContractCall, sender: Address) -> TxnHash:
        """
        Broadcasts a state changing transaction.

        :return: once the network has accepted the transaction
        :raises ConnectionError: or TimeoutError, OSError - the ledger could not be reached, mapped to NetworkFailure
        :raises TransactionRejected: if the transaction was refused before broadcast, e.g., the wallet declined to
                                     sign. Any other exception is reported as TransactionRejected by the orchestrator.
        """
        ...

    async def wait_for_receipt(self, txn_hash: TxnHash) -> TransactionReceipt:
        """
        :return: once the ledger has reported the transaction's inclusion or rejection
        """
        ...
