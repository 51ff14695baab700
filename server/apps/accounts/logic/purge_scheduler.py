"""Periodic removal of expired and revoked refresh tokens.

Each tick runs on a worker thread and is awaited for a bounded time.
Ticks never overlap while one is in flight. A tick that exceeds its
timeout is abandoned along with its worker: the database cancels its
statement, and the next tick runs on a fresh worker.
"""

import dataclasses
import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timedelta
from typing import Final, final

from django.conf import settings
from django.db import connection
from django.utils import timezone

from server.apps.accounts.infrastructure.protocols import RefreshTokenStore
from server.apps.accounts.infrastructure.repository import (
    DjangoRefreshTokenStore,
)

logger = logging.getLogger(__name__)

_DEFAULT_INTERVAL: Final = 6 * 60 * 60
_DEFAULT_REVOKED_RETENTION: Final = 30 * 60 * 60
_DEFAULT_TICK_TIMEOUT: Final = 15


@final
@dataclasses.dataclass(frozen=True, slots=True)
class PurgeConfig:
    """Explicit configuration for RefreshTokenPurger."""

    interval: timedelta = timedelta(seconds=_DEFAULT_INTERVAL)
    revoked_retention: timedelta = timedelta(seconds=_DEFAULT_REVOKED_RETENTION)
    tick_timeout: timedelta = timedelta(seconds=_DEFAULT_TICK_TIMEOUT)

    @classmethod
    def from_settings(cls) -> 'PurgeConfig':
        """Read configuration from Django settings.

        Returns:
            PurgeConfig instance.
        """
        return cls(
            interval=timedelta(seconds=settings.QUIETSTORE_PURGE_INTERVAL),
            revoked_retention=timedelta(
                seconds=settings.QUIETSTORE_PURGE_REVOKED_RETENTION,
            ),
            tick_timeout=timedelta(
                seconds=settings.QUIETSTORE_PURGE_TICK_TIMEOUT,
            ),
        )


@final
class _TickGuard:
    """Releases the single-flight lock at most once per tick."""

    def __init__(self, lock: threading.Lock) -> None:
        self._lock = lock
        self._guard = threading.Lock()
        self._released = False

    def release(self) -> None:
        with self._guard:
            if self._released:
                return
            self._released = True
        self._lock.release()


@final
class RefreshTokenPurger:
    """Cancellable, single-flight periodic purge of refresh tokens."""

    def __init__(
        self,
        store: RefreshTokenStore,
        config: PurgeConfig,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        """Initialize RefreshTokenPurger.

        Args:
            store: Refresh token storage to purge.
            config: Interval, retention and timeout.
            clock: Source of the current time.
        """
        self._store = store
        self._config = config
        self._clock = clock
        self._tick_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._executor: ThreadPoolExecutor | None = None

    def cutoffs(self) -> tuple[datetime, datetime]:
        """Compute the purge cutoffs for the current time.

        Returns:
            Tuple of (expires_before, revoked_before).
        """
        now = self._clock()
        return now, now - self._config.revoked_retention

    def run_once(self) -> int | None:
        """Run one purge tick.

        Returns:
            Number of deleted rows, or None if the tick was skipped,
            timed out or failed.
        """
        if not self._tick_lock.acquire(blocking=False):
            logger.warning('Previous refresh token purge still running, skipping')
            return None

        guard = _TickGuard(self._tick_lock)
        expires_before, revoked_before = self.cutoffs()
        try:
            future = self._get_executor().submit(
                self._run_tick,
                guard,
                expires_before,
                revoked_before,
            )
        except RuntimeError:
            guard.release()
            logger.exception('Refresh token purge could not be scheduled')
            return None
        future.add_done_callback(
            lambda done: self._release_if_cancelled(done, guard),
        )

        try:
            return future.result(
                timeout=self._config.tick_timeout.total_seconds(),
            )
        except FutureTimeoutError:
            logger.error(
                'Refresh token purge exceeded %s, will retry next tick',
                self._config.tick_timeout,
            )
            self._abandon_executor()
            guard.release()
        except Exception:
            logger.exception('Refresh token purge failed, will retry next tick')
        return None

    def run_forever(self) -> None:
        """Tick every interval until stop() is called."""
        interval = self._config.interval.total_seconds()
        logger.info('Refresh token purger started (interval: %ss)', interval)
        while not self._stop_event.wait(interval):
            self.run_once()
        logger.info('Refresh token purger stopped')

    def start(self) -> None:
        """Run the periodic purge on a background daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run_forever,
            name='refresh-purge-scheduler',
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Cancel the periodic purge.

        Args:
            timeout: Seconds to wait for the scheduler thread to exit.
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self._abandon_executor()

    @property
    def is_running(self) -> bool:
        """Check whether the background thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1,
                thread_name_prefix='refresh-purge',
            )
        return self._executor

    def _abandon_executor(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def _purge(self, expires_before: datetime, revoked_before: datetime) -> int:
        try:
            expired, revoked = self._store.count_purgeable(
                expires_before,
                revoked_before,
            )
            deleted = self._store.purge(expires_before, revoked_before)
        finally:
            # Worker thread owns its own connection
            connection.close()
        logger.info(
            'Refresh token purge ran at %s: expired=%d, revoked=%d, deleted=%d',
            expires_before.isoformat(),
            expired,
            revoked,
            deleted,
        )
        return deleted

    def _run_tick(
        self,
        guard: _TickGuard,
        expires_before: datetime,
        revoked_before: datetime,
    ) -> int:
        try:
            return self._purge(expires_before, revoked_before)
        finally:
            guard.release()

    def _release_if_cancelled(
        self,
        future: 'Future[int]',
        guard: _TickGuard,
    ) -> None:
        if future.cancelled():
            guard.release()


def get_refresh_token_purger() -> RefreshTokenPurger:
    """Build RefreshTokenPurger wired to the ORM.

    Returns:
        RefreshTokenPurger configured from settings.
    """
    config = PurgeConfig.from_settings()
    return RefreshTokenPurger(
        store=DjangoRefreshTokenStore(statement_timeout=config.tick_timeout),
        config=config,
    )
