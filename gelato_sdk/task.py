"""
Polling helper that waits for a relay task to finish.
"""
import asyncio
import logging
import time
from typing import Any, Optional

from .exceptions import (
    DeserializationError,
    TaskBlacklistedError,
    TaskCancelledError,
    TaskDroppedError,
    TaskNotFoundError,
    TaskRevertedError,
    TooManyRetriesError,
)
from .models import Execution, TaskState, TransactionStatus

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 15.0
DEFAULT_RETRIES = 5


class PendingTask:
    """
    A submitted task, polled until the backend reports a final state.

    Retries are consumed only when the backend holds no status for the
    task, which it reports for a short while after submission. Any other
    client error ends the wait immediately.

    Example:
        >>> execution = PendingTask(task_id, client, poll_interval=5).wait()
        >>> execution.transaction_hash
    """

    def __init__(
        self,
        task_id: str,
        client: Any,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        retries: int = DEFAULT_RETRIES,
    ):
        """
        Args:
            task_id: Id returned by a submission
            client: A RelayClient for :meth:`wait`, or an AsyncRelayClient
                for :meth:`wait_async`
            poll_interval: Seconds to sleep before each status request
            retries: Missing statuses tolerated before giving up
        """
        self.task_id = task_id
        self.client = client
        self.poll_interval = poll_interval
        self.retries = retries

    def __repr__(self) -> str:
        return f"PendingTask({self.task_id})"

    def wait(self) -> Execution:
        """
        Block until the task finishes.

        Returns:
            The successful execution

        Raises:
            TaskRevertedError: If the transaction reverted
            TaskCancelledError: If the backend cancelled the task
            TaskBlacklistedError: If the backend blacklisted the task
            TaskDroppedError: If the backend reports the task as not found
            TooManyRetriesError: If no status appeared within the retries
        """
        retries = self.retries
        while True:
            time.sleep(self.poll_interval)
            try:
                status = self.client.task_status(self.task_id)
            except TaskNotFoundError:
                retries = self._use_retry(retries)
                continue
            execution = self._settle(status)
            if execution is not None:
                return execution

    async def wait_async(self) -> Execution:
        """Async counterpart of :meth:`wait`."""
        retries = self.retries
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                status = await self.client.task_status(self.task_id)
            except TaskNotFoundError:
                retries = self._use_retry(retries)
                continue
            execution = self._settle(status)
            if execution is not None:
                return execution

    def _use_retry(self, retries: int) -> int:
        logger.warning(f"Undefined status while polling task {self.task_id}")
        if retries == 0:
            raise TooManyRetriesError(self.task_id, self.retries)
        return retries - 1

    def _settle(self, status: TransactionStatus) -> Optional[Execution]:
        """Return the execution of a finished task, None to keep polling, or raise."""
        check = status.check
        # A missing or date-only last check means the backend hasn't looked yet
        if check is None:
            return None

        state = check.task_state
        logger.debug(f"Task {self.task_id} is {state.value}")
        if state == TaskState.EXEC_SUCCESS:
            if status.execution is None:
                raise DeserializationError(f"Task {self.task_id} reported ExecSuccess without an execution")
            return status.execution
        if state == TaskState.EXEC_REVERTED:
            raise TaskRevertedError(self.task_id, status.execution, check)
        if state == TaskState.BLACKLISTED:
            raise TaskBlacklistedError(self.task_id, check.message, check.reason)
        if state == TaskState.CANCELLED:
            raise TaskCancelledError(self.task_id, check.message, check.reason)
        if state == TaskState.NOT_FOUND:
            raise TaskDroppedError(self.task_id)
        return None
