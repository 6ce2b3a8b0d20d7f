"""Bounded pool of backing-store handles with retry and backoff.

The pool owns a fixed set of reusable handles (SQLAlchemy sessions in the
application, any object in tests). Callers check a handle out, use it for a
single operation, and give it back:

- ``acquire`` returns an idle handle immediately when one exists. Otherwise
  the caller is parked on a FIFO waiting list until ``release`` hands it a
  handle or ``connection_timeout`` elapses, in which case a fresh, unpooled
  handle is synthesized. Contention never surfaces as an error.
- ``release`` serves the longest-waiting caller first and only returns
  handles the pool owns to the idle set; synthesized handles are dropped.
- ``execute_with_retry`` wraps an operation in acquire/release and retries
  transient failures with exponential backoff. Client errors (``4xx``) are
  re-raised immediately.

Handles are exclusively owned by one in-flight operation at a time. The
idle set and the waiting list are only mutated under ``_lock``; waiters
block on their own :class:`concurrent.futures.Future` outside the lock.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Generic, TypeVar

from certadmin.datastore.errors import error_status, is_client_error

H = TypeVar("H")  # backing-store handle type
T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Immutable retry settings derived from the pool configuration.

    :param max_attempts: Total attempts, including the first one (``>= 1``).
    :type max_attempts: int
    :param base_delay: Delay in seconds before the first retry.
    :type base_delay: float
    :param backoff_multiplier: Growth factor applied per attempt.
    :type backoff_multiplier: float
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.backoff_multiplier < 0:
            raise ValueError("retry delays must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """Return the backoff delay after the 0-based ``attempt`` failed."""
        return self.base_delay * (self.backoff_multiplier**attempt)


@dataclass(frozen=True, slots=True)
class PoolConfig:
    """Construction parameters of :class:`ConnectionPool`.

    :param max_connections: Number of handles pre-created at startup.
    :param connection_timeout: Seconds to wait for an idle handle.
    :param retry_attempts: Attempts made by ``execute_with_retry``.
    :param retry_delay: Base backoff delay in seconds.
    :param backoff_multiplier: Exponential growth factor of the delay.
    """

    max_connections: int = 10
    connection_timeout: float = 5.0
    retry_attempts: int = 3
    retry_delay: float = 1.0
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_connections < 1:
            raise ValueError("max_connections must be >= 1")
        if self.connection_timeout < 0:
            raise ValueError("connection_timeout must be non-negative")

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.retry_attempts,
            base_delay=self.retry_delay,
            backoff_multiplier=self.backoff_multiplier,
        )


class ConnectionPool(Generic[H]):
    """Fixed-size pool of handles with FIFO waiters and retrying execution.

    :param factory: Zero-argument callable creating a new handle.
    :type factory: Callable[[], H]
    :param config: Pool sizing, contention timeout and retry settings.
    :type config: PoolConfig | None
    :param reset: Optional hook run on every released handle (e.g.
        ``Session.close``) and on every owned handle at :meth:`close`.
    :type reset: Callable[[H], None] | None
    :param sleep: Blocking sleep used between retries.
    :type sleep: Callable[[float], None]
    """

    def __init__(
        self,
        factory: Callable[[], H],
        config: PoolConfig | None = None,
        *,
        reset: Callable[[H], None] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or PoolConfig()
        self.retry_policy = self.config.retry_policy
        self._factory = factory
        self._reset = reset
        self._sleep = sleep
        self._lock = threading.Lock()
        self._handles: list[H] = [factory() for _ in range(self.config.max_connections)]
        self._available: list[H] = list(self._handles)
        self._waiters: deque[Future[H]] = deque()
        self._closed = False

    # ------------------------------ Introspection ----------------------------

    @property
    def size(self) -> int:
        """Number of handles owned by the pool."""
        return len(self._handles)

    @property
    def available(self) -> int:
        """Number of idle owned handles."""
        with self._lock:
            return len(self._available)

    @property
    def waiting(self) -> int:
        """Number of callers currently parked in :meth:`acquire`."""
        with self._lock:
            return len(self._waiters)

    def owns(self, handle: H) -> bool:
        """Return ``True`` when ``handle`` is one of the pre-created handles."""
        return any(owned is handle for owned in self._handles)

    def stats(self) -> dict[str, int]:
        """Snapshot of the pool counters for health reporting."""
        with self._lock:
            return {
                "size": len(self._handles),
                "available": len(self._available),
                "waiting": len(self._waiters),
            }

    # --------------------------- Checkout protocol ---------------------------

    def acquire(self) -> H:
        """Check out a handle, waiting at most ``connection_timeout`` seconds.

        Never raises because of contention: when the wait times out a fresh
        unpooled handle is returned instead.

        :returns: Handle exclusively owned by the caller until released.
        :rtype: H
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("Connection pool is closed.")
            if self._available:
                return self._available.pop()
            waiter: Future[H] = Future()
            self._waiters.append(waiter)

        try:
            return waiter.result(timeout=self.config.connection_timeout)
        except TimeoutError:
            with self._lock:
                try:
                    self._waiters.remove(waiter)
                except ValueError:
                    # ``release`` served the waiter while the timer fired
                    serviced = True
                else:
                    serviced = False
            if serviced:
                return waiter.result()
            logger.warning(
                "pool.acquire_timeout",
                extra={"waiting": self.waiting, "elapsed_ms": self.config.connection_timeout * 1000},
            )
            return self._factory()

    def release(self, handle: H) -> None:
        """Return ``handle`` to the longest waiter, or to the idle set.

        Handles not created by the pool are discarded when nobody waits.

        :param handle: Handle previously obtained from :meth:`acquire`.
        :type handle: H
        """
        self._reset_handle(handle)
        with self._lock:
            if self._waiters:
                waiter = self._waiters.popleft()
                waiter.set_result(handle)
                return
            if self.owns(handle) and not self._closed:
                self._available.append(handle)

    def _reset_handle(self, handle: H) -> None:
        if self._reset is None:
            return
        try:
            self._reset(handle)
        except Exception:
            logger.exception("pool.reset_failed")

    # ------------------------------ Execution --------------------------------

    def execute_with_retry(self, operation: Callable[[H], T]) -> T:
        """Run ``operation`` on a pooled handle, retrying transient failures.

        Each attempt acquires a handle and releases it before deciding whether
        to retry. Client errors are re-raised immediately; other errors are
        retried after ``retry_delay * backoff_multiplier ** attempt`` seconds
        until attempts are exhausted, then the last error is re-raised.

        :param operation: Callable receiving the checked-out handle.
        :type operation: Callable[[H], T]
        :returns: The operation's result.
        :rtype: T
        :raises Exception: The client error, or the last transient error.
        """
        policy = self.retry_policy
        last_error: Exception | None = None

        for attempt in range(policy.max_attempts):
            handle = self.acquire()
            try:
                return operation(handle)
            except Exception as exc:
                last_error = exc
            finally:
                self.release(handle)

            if is_client_error(last_error):
                raise last_error

            if attempt < policy.max_attempts - 1:
                delay = policy.delay_for(attempt)
                logger.warning(
                    "pool.retry",
                    extra={
                        "attempt": attempt + 1,
                        "delay_s": delay,
                        "status": error_status(last_error),
                    },
                )
                self._sleep(delay)

        assert last_error is not None
        raise last_error

    # ------------------------------- Teardown --------------------------------

    def close(self) -> None:
        """Reset every owned handle and refuse further checkouts."""
        with self._lock:
            self._closed = True
            self._available.clear()
            handles = list(self._handles)
        for handle in handles:
            self._reset_handle(handle)


__all__ = ["ConnectionPool", "PoolConfig", "RetryPolicy"]
