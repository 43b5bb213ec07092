"""
Lifecycle for long-lived client components that run on the asyncio event loop, e.g., the client and the logging
service.

NEW -> STARTING -> RUNNING -> STOPPING -> STOPPED

A stopped service can be started again. If startup fails, the service passes through START_FAILED on its way to
STOPPED.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from enum import IntEnum, auto

from reactivex import Observable
from reactivex.subject import BehaviorSubject


class ServiceLifecycleState(IntEnum):
    NEW = auto()
    STARTING = auto()
    START_FAILED = auto()
    RUNNING = auto()
    STOPPING = auto()
    STOPPED = auto()


_TRANSITIONS: dict[ServiceLifecycleState, frozenset[ServiceLifecycleState]] = {
    ServiceLifecycleState.NEW: frozenset(
        {ServiceLifecycleState.STARTING, ServiceLifecycleState.STOPPED}
    ),
    ServiceLifecycleState.STARTING: frozenset(
        {ServiceLifecycleState.RUNNING, ServiceLifecycleState.START_FAILED}
    ),
    ServiceLifecycleState.START_FAILED: frozenset({ServiceLifecycleState.STOPPING}),
    ServiceLifecycleState.RUNNING: frozenset({ServiceLifecycleState.STOPPING}),
    ServiceLifecycleState.STOPPING: frozenset({ServiceLifecycleState.STOPPED}),
    ServiceLifecycleState.STOPPED: frozenset({ServiceLifecycleState.STARTING}),
}


@dataclass(slots=True, frozen=True)
class ServiceLifecycleEvent:
    service_name: str
    state: ServiceLifecycleState


@dataclass
class ServiceError(Exception):
    service_name: str
    cause: Exception | str

    def __str__(self) -> str:
        return f"[{self.service_name}] [{self.__class__.__name__}] {self.cause}"


class ServiceStartError(ServiceError):
    """
    Raised when the `_start` hook fails, or when the service is in a state it cannot be started from
    """


class ServiceStopError(ServiceError):
    """
    Raised when the service is asked to stop while it is still starting
    """


class AsyncService(ABC):
    """
    Subclasses implement the `_start` and `_stop` hooks.

    Lifecycle transitions are published on `lifecycle_state_observable`. New subscribers receive the current state
    first.
    """

    def __init__(self):
        self._logger = logging.getLogger(self.__class__.__name__)
        self.__state = ServiceLifecycleState.NEW
        self.__running = asyncio.Event()
        self.__stopped = asyncio.Event()
        self.__events: BehaviorSubject[ServiceLifecycleEvent] = BehaviorSubject(
            ServiceLifecycleEvent(self.name, self.__state)
        )

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @property
    def state(self) -> ServiceLifecycleState:
        return self.__state

    @property
    def running(self) -> bool:
        return self.__state == ServiceLifecycleState.RUNNING

    @property
    def stopped(self) -> bool:
        return self.__state == ServiceLifecycleState.STOPPED

    @property
    def lifecycle_state_observable(self) -> Observable[ServiceLifecycleEvent]:
        return self.__events

    async def await_running(self, timeout: timedelta | None = None):
        """
        :raises TimeoutError: if the service is not running within the timeout
        """
        await self.__await(self.__running, timeout)

    async def await_stopped(self, timeout: timedelta | None = None):
        """
        :raises TimeoutError: if the service is not stopped within the timeout
        """
        await self.__await(self.__stopped, timeout)

    @staticmethod
    async def __await(event: asyncio.Event, timeout: timedelta | None):
        if timeout is None:
            await event.wait()
        else:
            await asyncio.wait_for(event.wait(), timeout.total_seconds())

    async def start(self):
        """
        Starting a service that is already STARTING or RUNNING is a noop.

        :raises ServiceStartError: if the `_start` hook failed, in which case the service is stopped
        """
        if self.__state in (ServiceLifecycleState.STARTING, ServiceLifecycleState.RUNNING):
            return
        if ServiceLifecycleState.STARTING not in _TRANSITIONS[self.__state]:
            raise ServiceStartError(
                self.name, f"service cannot be started when state is: {self.__state.name}"
            )

        self.__set_state(ServiceLifecycleState.STARTING)
        try:
            await self._start()
        except Exception as err:
            self.__set_state(ServiceLifecycleState.START_FAILED)
            await self.stop()
            raise ServiceStartError(self.name, "error occurred while starting") from err
        self.__set_state(ServiceLifecycleState.RUNNING)

    async def stop(self):
        """
        Stopping a service that is already STOPPING or STOPPED is a noop. A NEW service goes straight to STOPPED.

        Errors raised by the `_stop` hook are logged. The service is STOPPED either way.

        :raises ServiceStopError: if the service is STARTING
        """
        match self.__state:
            case ServiceLifecycleState.STOPPING | ServiceLifecycleState.STOPPED:
                return
            case ServiceLifecycleState.NEW:
                self.__set_state(ServiceLifecycleState.STOPPED)
                return
            case ServiceLifecycleState.STARTING:
                raise ServiceStopError(
                    self.name,
                    f"service cannot be stopped when state is: {self.__state.name}",
                )

        self.__set_state(ServiceLifecycleState.STOPPING)
        try:
            await self._stop()
        except Exception as err:  # pylint: disable=broad-exception-caught
            self._logger.error("service failed to stop cleanly: %s", err)
        finally:
            self.__set_state(ServiceLifecycleState.STOPPED)

    async def restart(self):
        if self.__state == ServiceLifecycleState.STARTING:
            await self.await_running()
        await self.stop()
        await self.start()

    def __set_state(self, state: ServiceLifecycleState):
        assert state in _TRANSITIONS[self.__state], f"{self.__state.name} -> {state.name}"
        self._logger.info("state transition: %s -> %s", self.__state.name, state.name)
        self.__state = state

        match state:
            case ServiceLifecycleState.STARTING:
                self.__stopped.clear()
            case ServiceLifecycleState.RUNNING:
                self.__running.set()
            case ServiceLifecycleState.STOPPING:
                self.__running.clear()
            case ServiceLifecycleState.STOPPED:
                self.__stopped.set()

        self.__events.on_next(ServiceLifecycleEvent(self.name, state))

    @abstractmethod
    async def _start(self):
        """
        Startup hook
        """

    @abstractmethod
    async def _stop(self):
        """
        Shutdown hook
        """
