"""Scan lifecycle controller for the profiles foreign table."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from enum import Enum

from tqdm import tqdm

from .buffer import END_OF_SCAN, ResultBuffer
from .config import (
    HOST_VERSION_REQUIREMENT,
    ConnectorConfig,
    load_server_config,
    resolve_table_name,
)
from .errors import (
    ConfigError,
    RateLimitedError,
    UnsupportedOperationError,
)
from .fetchers import ClockFn, ProfileFetcher, epoch_secs, rate_limit_message
from .logging_utils import get_logger
from .models import Cell, ColumnRequest, OutcomeKind, Qual, SecretVault, Transport
from .predicates import LOOKUP_FIELD, extract_lookup_keys
from .projection import project
from .vault import EnvSecretVault

MODIFY_NOT_SUPPORTED = "modify on foreign table is not supported"


class ScanState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    SCANNING = "scanning"
    EXHAUSTED = "exhausted"


class GravatarFdw:
    """Read-only connector exposing Gravatar profiles as rows.

    One instance is the whole connector context: the host adapter creates it
    once and calls the lifecycle methods on it sequentially.
    """

    def __init__(
        self,
        *,
        transport: Transport,
        vault: SecretVault | None = None,
        clock: ClockFn = epoch_secs,
        logger: logging.Logger | None = None,
        show_progress: bool = False,
    ) -> None:
        self._transport = transport
        self._vault = vault if vault is not None else EnvSecretVault()
        self._clock = clock
        self._logger = logger or get_logger()
        self._show_progress = show_progress
        self._config: ConnectorConfig | None = None
        self._fetcher: ProfileFetcher | None = None
        self._buffer = ResultBuffer()
        self._state = ScanState.UNINITIALIZED

    @staticmethod
    def host_version_requirement() -> str:
        return HOST_VERSION_REQUIREMENT

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def config(self) -> ConnectorConfig | None:
        return self._config

    @property
    def buffer(self) -> ResultBuffer:
        return self._buffer

    def init(self, options: Mapping[str, str]) -> None:
        """Load server options and prepare the fetcher."""
        config = load_server_config(options, vault=self._vault, logger=self._logger)
        self._config = config
        self._fetcher = ProfileFetcher(
            transport=self._transport,
            base_url=config.api_url,
            headers=config.headers,
            clock=self._clock,
            logger=self._logger,
        )
        self._buffer.clear()
        self._state = ScanState.READY

    def begin_scan(self, options: Mapping[str, str], quals: Sequence[Qual]) -> None:
        """Resolve every ``email = '...'`` predicate into buffered profiles.

        Not-found and unexpected statuses skip the key. A 429 or a malformed
        success body aborts the scan.
        """
        if self._fetcher is None or self._config is None:
            raise ConfigError("Connector is not initialized; call init() first.")

        self._buffer.clear()
        resolve_table_name(options)
        self._state = ScanState.SCANNING

        keys = extract_lookup_keys(quals)
        if not keys:
            self._logger.info(
                "No email filters provided. Gravatar FDW requires "
                "%s = 'email@example.com' in WHERE clause",
                LOOKUP_FIELD,
            )
            return

        try:
            self._fetch_all(self._fetcher, keys, using_api_key=self._config.using_api_key)
        except Exception:
            # Aborted scans expose no partial rows.
            self._buffer.clear()
            self._state = ScanState.READY
            raise
        self._logger.info("Found %d profiles", len(self._buffer))

    def _fetch_all(self, fetcher: ProfileFetcher, keys: list[str], *, using_api_key: bool) -> None:
        iterator = tqdm(keys, desc="resolving profiles") if self._show_progress else keys
        for key in iterator:
            outcome = fetcher.fetch(key)
            if outcome.resolved:
                self._buffer.push(outcome.record)
            elif outcome.kind is OutcomeKind.RATE_LIMITED:
                raise RateLimitedError(
                    rate_limit_message(outcome.retry_after, using_api_key),
                    wait_seconds=outcome.retry_after,
                    using_api_key=using_api_key,
                )

    def iterate(self, columns: Sequence[ColumnRequest]) -> list[Cell | None] | None:
        """Return the next projected row, or None once the scan is exhausted."""
        record = self._buffer.advance()
        if record is END_OF_SCAN:
            if self._state is ScanState.SCANNING:
                self._state = ScanState.EXHAUSTED
            return None
        return project(record, columns)

    def re_scan(self) -> None:
        self._buffer.reset()
        self._state = ScanState.SCANNING

    def end_scan(self) -> None:
        self._buffer.clear()
        self._state = ScanState.READY

    def begin_modify(self, options: Mapping[str, str] | None = None) -> None:
        raise UnsupportedOperationError(MODIFY_NOT_SUPPORTED)

    def insert(self, row: Sequence[Cell | None]) -> None:
        return None

    def update(self, rowid: Cell, row: Sequence[Cell | None]) -> None:
        return None

    def delete(self, rowid: Cell) -> None:
        return None

    def end_modify(self) -> None:
        return None
