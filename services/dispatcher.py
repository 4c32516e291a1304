"""
Fire-and-forget dispatch of inbound messages.

Every accepted message becomes one tracked asyncio task that runs the
synchronous pipeline in the default thread pool, bounded by a semaphore.
Tracking the tasks lets shutdown stop intake and optionally drain.
"""
import asyncio
import threading
from typing import List, Optional, Set

from core.logger import setup_logger
from core.schema import InboundMessage, PipelineState
from services.pipeline import MessagePipeline

logger = setup_logger(__name__)


class MessageDispatcher:
    """Spawns and tracks one pipeline task per inbound message."""

    def __init__(self, pipeline: MessagePipeline, max_concurrent: int = 10):
        self.pipeline = pipeline
        self.max_concurrent = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._tasks: Set[asyncio.Task] = set()
        self._accepting = True
        self._cancelled = threading.Event()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    @property
    def accepting(self) -> bool:
        return self._accepting

    def handle_inbound_message(
        self,
        source_address: str,
        sender_email: str,
        recipients: List[str],
        subject: str,
        body: str,
    ) -> None:
        """Entry point for the transport boundary. Must be called from the event loop."""
        self.submit(InboundMessage(
            source_address=source_address,
            sender_email=sender_email,
            recipients=list(recipients),
            subject=subject,
            body=body,
        ))

    def submit(self, message: InboundMessage) -> Optional[asyncio.Task]:
        """
        Schedule a message for processing.

        Returns:
            The tracking task, or None when the dispatcher is shutting down
        """
        if not self._accepting:
            logger.warning(f"Dispatcher is shutting down; dropping message from {message.sender_email}")
            return None

        task = asyncio.get_running_loop().create_task(self._process(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _process(self, message: InboundMessage) -> Optional[PipelineState]:
        async with self._semaphore:
            if self._cancelled.is_set():
                logger.warning(f"Shutdown in progress; skipping queued message from {message.sender_email}")
                return None
            loop = asyncio.get_running_loop()
            state = await loop.run_in_executor(None, self.pipeline.process, message)
            logger.info(f"Message from {message.sender_email} finished in state {state.value}")
            return state

    async def drain(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for in-flight messages.

        Returns:
            True if every task finished within the timeout
        """
        if not self._tasks:
            return True
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        return not pending

    async def shutdown(self, drain: bool = True, timeout: Optional[float] = 30.0) -> None:
        """
        Stop accepting messages and optionally wait for in-flight ones.

        Messages still queued on the semaphore when the wait ends are
        skipped; messages already inside the pipeline are left to finish.
        """
        self._accepting = False
        pending = self.in_flight
        logger.info(f"Dispatcher shutting down with {pending} message(s) in flight")

        if drain and pending:
            if await self.drain(timeout):
                logger.info("All in-flight messages drained")
            else:
                logger.warning(f"{self.in_flight} message(s) still in flight after {timeout}s; abandoning")

        self._cancelled.set()
