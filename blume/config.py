"""
Blume client configuration

Configuration is supplied at startup, either in code or from a TOML file:

.. code-block:: toml

    [network]
    chain_id = 11155111

    [contracts]
    pool = "0x5bCAE371B52A8a497f4Cb9178E14C137141B0c13"
    tiered_staking = "0xFb3FaC0BDf5dB9c11857F6e0cBedC4f13147D06c"
    liquid_staking = "0x74534A5ca5793E338ccDB6De58dA5662B05070C5"
    vault = "0x0C7468Bd1eca2BD7d39aE496234427cD7FEb8344"

    [assets.BLX]
    decimals = 18
    address = "0x050F2D144cAdB54Ae304c234F273B0124a126dB5"
    name = "BLUME Token"

    [assets.USDC]
    decimals = 18
    address = "0x1D68BE240D1A9e527410B017075868bc543E7538"
    name = "USD Coin"

    [assets.stBLX]
    decimals = 18
    address = "0xec16eE9362d310D42DF579AdA7e627fAf99F6FA7"
    name = "Staked BLX"

    [client]
    slippage_bps = 100
"""
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from blume.contracts.pool import PoolContract
from blume.contracts.tiered_staking import StakingContract
from blume.contracts.vault import VaultContract
from blume.errors import ConfigError
from blume.model import Address, Asset, BASIS_POINTS

SEPOLIA_CHAIN_ID = 11155111

ANVIL_CHAIN_ID = 31337

DEFAULT_SLIPPAGE_BPS = 100


@dataclass(slots=True, frozen=True)
class ContractAddresses:
    pool: Address
    tiered_staking: Address
    liquid_staking: Address
    vault: Address


@dataclass(slots=True)
class BlumeConfig:
    """
    Blume client config
    """

    chain_id: int
    contracts: ContractAddresses
    assets: dict[str, Asset] = field(default_factory=dict)
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS

    def __post_init__(self):
        for symbol in ("BLX", "USDC", "stBLX"):
            if symbol not in self.assets:
                raise ConfigError(f"asset is not configured: {symbol}")
        if not 0 <= self.slippage_bps < BASIS_POINTS:
            raise ConfigError(f"slippage_bps out of range: {self.slippage_bps}")

    @property
    def blx(self) -> Asset:
        return self.assets["BLX"]

    @property
    def usdc(self) -> Asset:
        return self.assets["USDC"]

    @property
    def st_blx(self) -> Asset:
        return self.assets["stBLX"]

    @property
    def pool(self) -> PoolContract:
        return PoolContract(self.contracts.pool, token0=self.blx, token1=self.usdc)

    @property
    def tiered_staking(self) -> StakingContract:
        return StakingContract(self.contracts.tiered_staking, self.blx)

    @property
    def liquid_staking(self) -> StakingContract:
        return StakingContract(self.contracts.liquid_staking, self.blx)

    @property
    def vault(self) -> VaultContract:
        return VaultContract(self.contracts.vault, self.blx)

    def asset(self, symbol: str) -> Asset:
        """
        :raises ConfigError: if the asset is not configured
        """
        try:
            return self.assets[symbol]
        except KeyError as err:
            raise ConfigError(f"asset is not configured: {symbol}") from err

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "BlumeConfig":
        """
        :raises ConfigError: if a required setting is missing or invalid
        """
        try:
            contracts = config["contracts"]
            return cls(
                chain_id=int(config["network"]["chain_id"]),
                contracts=ContractAddresses(
                    pool=Address(contracts["pool"]),
                    tiered_staking=Address(contracts["tiered_staking"]),
                    liquid_staking=Address(contracts["liquid_staking"]),
                    vault=Address(contracts["vault"]),
                ),
                assets={
                    symbol: Asset(
                        symbol=symbol,
                        decimals=int(asset["decimals"]),
                        address=Address(asset["address"]),
                        name=asset.get("name", ""),
                    )
                    for symbol, asset in config["assets"].items()
                },
                slippage_bps=int(
                    config.get("client", {}).get("slippage_bps", DEFAULT_SLIPPAGE_BPS)
                ),
            )
        except KeyError as err:
            raise ConfigError(f"missing config setting: {err}") from err
        except (TypeError, ValueError) as err:
            raise ConfigError(f"invalid config setting: {err}") from err

    @classmethod
    def from_config_file(cls, file: Path) -> "BlumeConfig":
        """
        Constructs the config from the specified TOML config file
        """
        with open(file, "rb") as config_file:
            return cls.from_dict(tomllib.load(config_file))

    @classmethod
    def default(cls) -> "BlumeConfig":
        """
        Sepolia deployment
        """
        return cls(
            chain_id=SEPOLIA_CHAIN_ID,
            contracts=ContractAddresses(
                pool=Address("0x5bCAE371B52A8a497f4Cb9178E14C137141B0c13"),
                tiered_staking=Address("0xFb3FaC0BDf5dB9c11857F6e0cBedC4f13147D06c"),
                liquid_staking=Address("0x74534A5ca5793E338ccDB6De58dA5662B05070C5"),
                vault=Address("0x0C7468Bd1eca2BD7d39aE496234427cD7FEb8344"),
            ),
            assets={
                "BLX": Asset(
                    "BLX",
                    18,
                    Address("0x050F2D144cAdB54Ae304c234F273B0124a126dB5"),
                    "BLUME Token",
                ),
                "USDC": Asset(
                    "USDC",
                    18,
                    Address("0x1D68BE240D1A9e527410B017075868bc543E7538"),
                    "USD Coin",
                ),
                "stBLX": Asset(
                    "stBLX",
                    18,
                    Address("0xec16eE9362d310D42DF579AdA7e627fAf99F6FA7"),
                    "Staked BLX",
                ),
            },
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "network": {"chain_id": self.chain_id},
            "contracts": {
                "pool": self.contracts.pool,
                "tiered_staking": self.contracts.tiered_staking,
                "liquid_staking": self.contracts.liquid_staking,
                "vault": self.contracts.vault,
            },
            "assets": {
                symbol: {
                    "decimals": asset.decimals,
                    "address": asset.address,
                    "name": asset.name,
                }
                for symbol, asset in self.assets.items()
            },
            "client": {"slippage_bps": self.slippage_bps},
        }
