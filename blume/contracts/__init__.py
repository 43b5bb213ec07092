"""
Typed contract call records.

Each contract function is modelled as a record whose fields are validated on construction. Amounts are passed as
`Amount` instances, which are only created through the decimal codec, and the records check that the amount's asset
is the one the contract expects.
"""
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from blume.ledger import ContractCall
from blume.model import Amount, Asset

T = TypeVar("T")


class ContractRead(ABC, Generic[T]):
    """
    View function
    """

    @abstractmethod
    def to_call(self) -> ContractCall:
        """
        :return: ContractCall, which is also used as the query cache key
        """

    def decode(self, data: Any) -> T:
        """
        Converts the raw ledger result
        """
        return data


class ContractWrite(ABC):
    """
    State changing function
    """

    @abstractmethod
    def to_call(self) -> ContractCall:
        """
        :return: ContractCall
        """


def check_asset(amount: Amount, expected: Asset, field: str):
    """
    :raises ValueError: if the amount is not denominated in the expected asset
    """
    if amount.asset != expected:
        raise ValueError(
            f"{field} must be denominated in {expected.symbol}: {amount.asset.symbol}"
        )


def check_index(index: int):
    if index < 0:
        raise ValueError(f"index must not be negative: {index}")
