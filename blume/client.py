"""
Blume client
"""
from pathlib import Path

from blume.chain import ChainQueries
from blume.config import BlumeConfig
from blume.core.async_service import AsyncService
from blume.errors import NetworkFailure
from blume.flows.pool import PoolFlow
from blume.flows.staking import StakingFlow
from blume.flows.vault import VaultFlow
from blume.ledger import Ledger
from blume.model import Address
from blume.network import NetworkGuard
from blume.queries import QueryCache


class BlumeClient(AsyncService):
    """
    Wires the protocol flows to a ledger. All flows share a single query cache.

    The connected account is optional - while no account is connected, account queries are disabled and write flows
    raise AccountNotConnected.
    """

    def __init__(self, config: BlumeConfig, ledger: Ledger):
        super().__init__()
        self.config = config
        self.ledger = ledger
        self.cache = QueryCache(ledger)
        self.queries = ChainQueries(config, ledger, self.cache)
        self.network = NetworkGuard(ledger, config.chain_id)

        self.pool = PoolFlow(ledger, self.queries, self.network)
        self.staking = StakingFlow(ledger, self.queries, self.network)
        self.vault = VaultFlow(ledger, self.queries, self.network)

    @classmethod
    def from_config_file(cls, file: Path, ledger: Ledger) -> "BlumeClient":
        return cls(BlumeConfig.from_config_file(file), ledger)

    @property
    def account(self) -> Address | None:
        return self.queries.account

    def connect(self, account: Address):
        """
        Sets the account used by queries and write flows
        """
        if self.queries.account != account:
            self._logger.info("account connected: %s", account)
        self.queries.account = account

    def disconnect(self):
        """
        Clears the connected account. Account queries become disabled.
        """
        if self.queries.account is not None:
            self._logger.info("account disconnected: %s", self.queries.account)
        self.queries.account = None

    async def network_ok(self) -> bool:
        """
        :return: True if the ledger is connected to the configured chain
        :raises NetworkFailure: if the ledger cannot be reached
        """
        return await self.network.is_correct_network()

    async def ensure_network(self):
        """
        :raises WrongNetwork: if the ledger is connected to a different chain
        """
        await self.network.ensure()

    def abandon_all(self) -> int:
        """
        Stops watching all outstanding transaction sequences

        :return: number of sequences abandoned
        """
        return (
            self.pool.abandon_all()
            + self.staking.abandon_all()
            + self.vault.abandon_all()
        )

    async def _start(self):
        try:
            if not await self.network_ok():
                self._logger.warning(
                    "ledger is connected to the wrong network - writes are blocked until corrected: expected chain_id=%s",
                    self.config.chain_id,
                )
        except NetworkFailure as err:
            self._logger.warning("ledger is unreachable: %s", err)

    async def _stop(self):
        abandoned = self.abandon_all()
        if abandoned:
            self._logger.info("abandoned transaction sequences: %s", abandoned)
