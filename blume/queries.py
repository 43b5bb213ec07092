"""
Observable ledger queries

Queries are read-only and idempotent. Each query publishes its `QueryState` on a reactivex BehaviorSubject, so
subscribers immediately receive the current snapshot followed by every change.

Refresh policy
--------------
- refreshes are manual - failed queries are never retried automatically
- stale-while-revalidate: while refreshing, and after a failed refresh, the previous value is kept
- concurrent refreshes of the same query share a single ledger request
- queries that depend on an absent identity are disabled: they never issue a ledger request
"""
import asyncio
from dataclasses import dataclass, replace
from typing import Generic, TypeVar, Callable, Awaitable, Any

from reactivex import Observable
from reactivex.subject import BehaviorSubject

from blume.contracts import ContractRead
from blume.core.logging import get_logger
from blume.errors import handle_ledger_errors
from blume.ledger import ContractCall, Ledger

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class QueryState(Generic[T]):
    """
    Query snapshot
    """

    value: T | None = None
    is_loading: bool = False
    error: Exception | None = None
    # stale queries need to be refreshed before their value can be trusted
    stale: bool = True
    enabled: bool = True


class Query(Generic[T]):
    """
    Observable query
    """

    def __init__(
        self,
        key: ContractCall | None,
        fetch: Callable[[], Awaitable[T]] | None,
    ):
        """
        :param key: query cache key
        :param fetch: None means the query is disabled
        """
        self._key = key
        self._fetch = fetch
        self._logger = get_logger(self, key.function if key else None)
        self._subject: BehaviorSubject[QueryState[T]] = BehaviorSubject(
            QueryState(stale=fetch is not None, enabled=fetch is not None)
        )
        self._in_flight: asyncio.Task | None = None
        # bumped on each invalidation, so a refresh that started before an invalidation leaves the query stale
        self._generation = 0

    @classmethod
    def disabled(cls) -> "Query[Any]":
        return cls(key=None, fetch=None)

    @property
    def key(self) -> ContractCall | None:
        return self._key

    @property
    def state(self) -> QueryState[T]:
        return self._subject.value

    @property
    def value(self) -> T | None:
        return self.state.value

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def error(self) -> Exception | None:
        return self.state.error

    @property
    def enabled(self) -> bool:
        return self.state.enabled

    @property
    def stale(self) -> bool:
        return self.state.stale

    @property
    def observable(self) -> Observable[QueryState[T]]:
        return self._subject

    async def refresh(self) -> QueryState[T]:
        """
        Fetches the value from the ledger. If a refresh is already in progress, then its result is awaited.

        :return: QueryState after the refresh completed. Errors are reported via `QueryState.error`.
        """
        if not self.enabled:
            return self.state

        if self._in_flight is None or self._in_flight.done():
            self._in_flight = asyncio.create_task(self._refresh())
        await asyncio.shield(self._in_flight)
        return self.state

    async def get(self) -> T | None:
        """
        :return: the cached value, refreshing first if the query is stale
        """
        if self.stale:
            await self.refresh()
        return self.value

    def invalidate(self):
        """
        Marks the query stale. The cached value is kept until the next successful refresh.
        """
        if not self.enabled:
            return
        self._generation += 1
        if not self.stale:
            self._subject.on_next(replace(self.state, stale=True))

    async def _refresh(self):
        assert self._fetch is not None
        generation = self._generation
        self._subject.on_next(replace(self.state, is_loading=True))
        try:
            value = await self._fetch()
        except Exception as err:  # pylint: disable=broad-exception-caught
            self._logger.warning("query failed: %s: %s", self._key, err)
            self._subject.on_next(replace(self.state, is_loading=False, error=err))
        else:
            self._subject.on_next(
                QueryState(value=value, stale=generation != self._generation)
            )


class QueryCache:
    """
    Single cache for all ledger queries, keyed by the read call, i.e., (contract, function, arguments).
    Consumers that ask for the same read share the same Query.
    """

    def __init__(self, ledger: Ledger):
        self._ledger = ledger
        self._queries: dict[ContractCall, Query[Any]] = {}

    def query(self, read: ContractRead[T] | None) -> Query[T]:
        """
        :param read: None returns a disabled query
        """
        if read is None:
            return Query.disabled()

        key = read.to_call()
        if key not in self._queries:

            async def fetch() -> T:
                return await self._read(read)

            self._queries[key] = Query(key, fetch)
        return self._queries[key]

    def uncached(self, read: ContractRead[T] | None) -> Query[T]:
        """
        Query that is not registered in the cache, for reads whose arguments rarely repeat, e.g., swap quotes.
        It is never invalidated or refreshed by the cache.

        :param read: None returns a disabled query
        """
        if read is None:
            return Query.disabled()

        async def fetch() -> T:
            return await self._read(read)

        return Query(read.to_call(), fetch)

    def __len__(self) -> int:
        return len(self._queries)

    def invalidate(self, predicate: Callable[[ContractCall], bool]) -> list[Query[Any]]:
        """
        Marks the matching queries stale

        :return: invalidated queries
        """
        invalidated = [query for key, query in self._queries.items() if predicate(key)]
        for query in invalidated:
            query.invalidate()
        return invalidated

    def invalidate_contract(self, contract: str, *functions: str) -> list[Query[Any]]:
        """
        Marks the contract's queries stale

        :param functions: if none are specified, then all of the contract's queries are invalidated
        """
        contract = contract.lower()

        def matches(key: ContractCall) -> bool:
            return key.contract.lower() == contract and (
                not functions or key.function in functions
            )

        return self.invalidate(matches)

    async def refresh_stale(self):
        """
        Refreshes stale queries that have been fetched before. Queries that were never fetched are left for their
        consumers to load.
        """
        stale = [
            query
            for query in self._queries.values()
            if query.stale and (query.value is not None or query.error is not None)
        ]
        await asyncio.gather(*(query.refresh() for query in stale))

    @handle_ledger_errors
    async def _read(self, read: ContractRead[T]) -> T:
        return read.decode(await self._ledger.read(read.to_call()))
