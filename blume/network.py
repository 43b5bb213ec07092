"""
Network check
"""
from blume.core.logging import get_logger
from blume.errors import WrongNetwork, handle_ledger_errors
from blume.ledger import Ledger


class NetworkGuard:
    """
    Blocks write calls while the ledger is connected to a different chain than the one configured.
    """

    def __init__(self, ledger: Ledger, expected_chain_id: int):
        self._ledger = ledger
        self.expected_chain_id = expected_chain_id
        self._logger = get_logger(self)

    @handle_ledger_errors
    async def chain_id(self) -> int:
        return await self._ledger.chain_id()

    async def is_correct_network(self) -> bool:
        """
        :raises NetworkFailure: if the ledger cannot be reached
        """
        return await self.chain_id() == self.expected_chain_id

    async def ensure(self):
        """
        :raises WrongNetwork: if the ledger is connected to a different chain
        :raises NetworkFailure: if the ledger cannot be reached
        """
        actual = await self.chain_id()
        if actual != self.expected_chain_id:
            self._logger.warning(
                "wrong network: expected=%s actual=%s", self.expected_chain_id, actual
            )
            raise WrongNetwork(self.expected_chain_id, actual)
