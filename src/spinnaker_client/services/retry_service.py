"""
Retry orchestration for requests the Spinnaker API rejects transiently.

Spinnaker answers 400 for requests that reference resources it has not
finished creating yet, so a 400 is replayed after a delay. Any other
failure goes straight back to the caller.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, TypeVar

import requests

from ..models.errors import ServiceError, SpinnakerClientError


R = TypeVar("R")


@dataclass(frozen=True)
class RetryPolicy:
    """When and how often a request is replayed."""
    max_attempts: int = 5
    retry_status: int = 400

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_before(self, attempt: int) -> int:
        """Seconds to wait before a 1-indexed attempt: 0, 1, 4, 9, 16, ..."""
        return (attempt - 1) ** 2 if attempt > 1 else 0

    def should_retry(self, error: Exception) -> bool:
        return isinstance(error, ServiceError) and error.status == self.retry_status


@dataclass
class AttemptRecord:
    """Outcome of one attempt of a retried request."""
    attempt: int
    delay_seconds: int
    succeeded: bool
    status: Optional[int] = None
    error: Optional[str] = None


class RetryOrchestrator:
    """
    Replays a request while the API keeps rejecting it with the retry status.

    Holds no state between calls, so one orchestrator can be shared by
    concurrent callers. Attempts of one call are strictly sequential.
    """

    def __init__(self, policy: Optional[RetryPolicy] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize the retry orchestrator.

        Args:
            policy: Retry policy, the default allows 5 attempts on HTTP 400
            sleep: Function used to wait between attempts
        """
        self.policy = policy or RetryPolicy()
        self.sleep = sleep
        self.logger = logging.getLogger(__name__)

    def execute_with_retry(self,
                           request_factory: Callable[[], requests.PreparedRequest],
                           execute: Callable[[requests.PreparedRequest], R],
                           attempt_log: Optional[List[AttemptRecord]] = None) -> R:
        """
        Execute a request, replaying it on the retry status.

        Every attempt asks ``request_factory`` for a fresh request.

        Args:
            request_factory: Builds the request; its errors are never retried
            execute: Sends a request and returns the result or raises
            attempt_log: Optional list that receives one AttemptRecord per attempt

        Returns:
            Result of the first successful attempt

        Raises:
            BuildError: If the factory fails
            ServiceError: The last rejection, once attempts are exhausted or
                the status is not retryable
            TransportError: On the first network or decoding failure
        """
        attempt = 1
        while True:
            delay = self.policy.delay_before(attempt)
            if attempt > 1:
                self.sleep(delay)

            request = request_factory()
            context = {"http_method": request.method, "http_url": request.url, "attempt": attempt}
            if attempt > 1:
                self.logger.info(f"Retry attempt {attempt} for request {request.method} {request.url}",
                                 extra=context)

            try:
                result = execute(request)
            except SpinnakerClientError as e:
                status = e.status if isinstance(e, ServiceError) else None
                self._record(attempt_log, AttemptRecord(attempt, delay, False, status, str(e)))

                if not self.policy.should_retry(e):
                    raise
                if attempt >= self.policy.max_attempts:
                    self.logger.warning(
                        f"Giving up on {request.method} {request.url} after {attempt} attempts: {e}",
                        extra=dict(context, http_status=status)
                    )
                    raise

                attempt += 1
                continue

            self._record(attempt_log, AttemptRecord(
                attempt, delay, True, getattr(result, "status_code", None)
            ))
            return result

    @staticmethod
    def _record(attempt_log: Optional[List[AttemptRecord]], record: AttemptRecord):
        if attempt_log is not None:
            attempt_log.append(record)
