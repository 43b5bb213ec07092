"""
Queue-backed logging for asyncio applications
"""
import logging
from logging.handlers import QueueHandler, QueueListener
from queue import SimpleQueue

from blume.core.async_service import AsyncService
from blume.core.logging import configure_logging


class AsyncLoggingService(AsyncService):
    """
    While running, the root logger only enqueues records. A QueueListener thread drains the queue into the
    configured handlers, so that file and stream I/O never blocks the ledger watchers on the event loop.

    Stopping the service flushes the queue and restores direct logging with the same level and handlers.
    """

    def __init__(
        self,
        level: int | str = logging.WARNING,
        handlers: list[logging.Handler] | None = None,
    ):
        super().__init__()
        self.level = level
        self._handlers = list(handlers) if handlers else None
        self._listener: QueueListener | None = None

    @property
    def queued(self) -> bool:
        """
        :return: True if log records are currently routed through the queue
        """
        return self._listener is not None

    async def _start(self):
        configure_logging(self.level, self._handlers)
        root = logging.getLogger()
        targets = list(root.handlers)

        queue: SimpleQueue[logging.LogRecord] = SimpleQueue()
        root.handlers = [QueueHandler(queue)]
        self._listener = QueueListener(queue, *targets, respect_handler_level=True)
        self._listener.start()

    async def _stop(self):
        listener, self._listener = self._listener, None
        configure_logging(self.level, self._handlers)
        if listener is not None:
            listener.stop()
