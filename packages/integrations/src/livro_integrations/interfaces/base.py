"""Vendor-agnostic ERP synchronization interfaces.

This module defines the protocol any ERP adapter must satisfy and the
synchronizer that drives it. The protocol uses Python's structural subtyping
via typing.Protocol, so an adapter only needs a `provider` attribute and a
`fetch_records()` method; no inheritance is required.

Example Usage:
    ```python
    from livro_integrations.interfaces.base import ERPSynchronizer

    class BlingSource:
        provider = "bling"

        def fetch_records(self, kind: RecordKind) -> list[dict]:
            # Call the vendor API here
            ...

    result = ERPSynchronizer().sync(BlingSource())
    if result.is_success:
        build_regulatory_book(result.data, DocumentType.ECD, company)
    ```
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol, runtime_checkable

import structlog
from pydantic import BaseModel, Field

from livro_core.exceptions import IntegrationError
from livro_integrations.config import SyncConfig
from livro_integrations.interfaces.types import (
    ConnectionStatus,
    ERPData,
    RecordKind,
    get_provider,
)

logger = structlog.get_logger()

MIN_CREDENTIAL_LENGTH = 4


# =============================================================================
# ENUMERATIONS
# =============================================================================

class SyncStatus(str, Enum):
    """Status codes for synchronization results."""

    SUCCESS = "success"
    """All record kinds were fetched."""

    ERROR = "error"
    """Synchronization failed; no data is returned."""


# =============================================================================
# RESULT MODELS
# =============================================================================

class SyncResult(BaseModel):
    """Standardized wrapper for a synchronization run.

    Attributes:
        status: The execution status (success or error)
        provider: Provider identifier of the record source
        data: The synchronized records when status is SUCCESS
        error: Error message if status is ERROR, None otherwise
        error_details: Context from the underlying IntegrationError
        attempts: Fetch attempts made, retries included
        started_at: When synchronization began
        completed_at: When synchronization finished
        duration_ms: Synchronization time in milliseconds
    """

    status: SyncStatus = Field(
        default=SyncStatus.SUCCESS,
        description="Execution status of the synchronization"
    )
    provider: str = Field(description="Provider identifier")
    data: Optional[ERPData] = Field(
        default=None,
        description="Synchronized records"
    )
    error: Optional[str] = Field(
        default=None,
        description="Error message if status is ERROR"
    )
    error_details: Optional[dict[str, Any]] = Field(
        default=None,
        description="Additional error context and details"
    )
    attempts: int = Field(default=0, ge=0)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_ms: Optional[float] = Field(default=None, ge=0)

    @property
    def is_success(self) -> bool:
        """Check if the result indicates a successful synchronization."""
        return self.status == SyncStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        """Check if the result indicates an error occurred."""
        return self.status == SyncStatus.ERROR

    @classmethod
    def success(cls, provider: str, data: ERPData, **kwargs: Any) -> SyncResult:
        """Create a successful result with the given data."""
        return cls(status=SyncStatus.SUCCESS, provider=provider, data=data, **kwargs)

    @classmethod
    def failure(
        cls,
        provider: str,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        **kwargs: Any,
    ) -> SyncResult:
        """Create an error result with the given message."""
        return cls(
            status=SyncStatus.ERROR,
            provider=provider,
            error=message,
            error_details=details,
            **kwargs,
        )


# =============================================================================
# RECORD SOURCE PROTOCOL
# =============================================================================

@runtime_checkable
class RecordSource(Protocol):
    """Protocol for an ERP adapter.

    Implementations raise IntegrationError on vendor failures; its
    `recoverable` flag decides whether the synchronizer retries.
    """

    provider: str

    def fetch_records(self, kind: RecordKind) -> list[Mapping[str, Any]]:
        """Fetch every record of one kind for the configured period.

        Args:
            kind: The record collection to fetch

        Returns:
            Records as plain mappings, in vendor order

        Raises:
            IntegrationError: On vendor failures
        """
        ...


class StaticRecordSource:
    """Record source backed by records already in memory (imports, fixtures)."""

    def __init__(self, provider: str, records: Mapping[str, list[Mapping[str, Any]]]):
        self.provider = provider
        self._records = records

    def fetch_records(self, kind: RecordKind) -> list[Mapping[str, Any]]:
        return list(self._records.get(RecordKind(kind).value, []))


# =============================================================================
# CREDENTIALS
# =============================================================================

def check_credentials(provider: Any, keys: Optional[Mapping[str, Any]]) -> bool:
    """Check that every credential the provider requires is filled in.

    Args:
        provider: Provider identifier or ERPProvider
        keys: Credential values by field name

    Returns:
        True if every required field is present and longer than 3 characters

    Raises:
        ConfigurationError: If the provider is not in the catalog
    """
    option = get_provider(provider)
    if not keys:
        return False
    return all(
        isinstance(keys.get(name), str) and len(keys[name].strip()) >= MIN_CREDENTIAL_LENGTH
        for name in option.required_fields
    )


def connection_status_for(provider: Any, keys: Optional[Mapping[str, Any]]) -> ConnectionStatus:
    """Status to record after a credential check."""
    return ConnectionStatus.CONNECTED if check_credentials(provider, keys) else ConnectionStatus.ERROR


# =============================================================================
# SYNCHRONIZER
# =============================================================================

def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ERPSynchronizer:
    """Fetch every record kind from a record source, retrying transient failures."""

    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """
        Initialize the synchronizer.

        Args:
            config: Retry settings (default: loaded from LIVRO_SYNC_* variables)
            sleep: Called with the retry delay between attempts
            clock: Returns "now" for timings and ERPData.last_sync
        """
        self.config = config or SyncConfig()
        self._sleep = sleep
        self._clock = clock

    def sync(
        self,
        source: RecordSource,
        status: ConnectionStatus = ConnectionStatus.CONNECTED,
    ) -> SyncResult:
        """
        Synchronize all record kinds from a source.

        Args:
            source: The ERP adapter
            status: Caller-owned connection status; only CONNECTED sources sync

        Returns:
            SyncResult; failures are reported in the result, not raised
        """
        provider = source.provider
        started = self._clock()

        if status != ConnectionStatus.CONNECTED:
            logger.warning("erp_sync_not_connected", provider=provider, status=status.value)
            return SyncResult.failure(
                provider,
                "Connection not established",
                details={"status": status.value},
                started_at=started,
                completed_at=started,
                duration_ms=0.0,
            )

        collected: dict[str, list[dict[str, Any]]] = {}
        attempts = 0
        for kind in RecordKind:
            try:
                records, used = self._fetch_with_retry(source, kind)
            except IntegrationError as e:
                attempts += e.details.get("attempts", 1)
                completed = self._clock()
                logger.error(
                    "erp_sync_failed",
                    provider=provider,
                    kind=kind.value,
                    error=e.message,
                    recoverable=e.recoverable,
                )
                return SyncResult.failure(
                    provider,
                    e.message,
                    details=e.details,
                    attempts=attempts,
                    started_at=started,
                    completed_at=completed,
                    duration_ms=_elapsed_ms(started, completed),
                )
            attempts += used
            collected[kind.value] = records

        completed = self._clock()
        data = ERPData(**collected, last_sync=completed)
        logger.info(
            "erp_sync_completed",
            provider=provider,
            records=data.record_count,
            attempts=attempts,
        )
        return SyncResult.success(
            provider,
            data,
            attempts=attempts,
            started_at=started,
            completed_at=completed,
            duration_ms=_elapsed_ms(started, completed),
        )

    def _fetch_with_retry(
        self,
        source: RecordSource,
        kind: RecordKind,
    ) -> tuple[list[dict[str, Any]], int]:
        """Fetch one kind; returns the records and the number of attempts."""
        attempt = 0
        while True:
            attempt += 1
            try:
                records = source.fetch_records(kind)
                break
            except IntegrationError as e:
                if not e.recoverable or attempt > self.config.max_retries:
                    e.details["attempts"] = attempt
                    raise
                logger.warning(
                    "erp_fetch_retry",
                    provider=source.provider,
                    kind=kind.value,
                    attempt=attempt,
                    error=e.message,
                )
                self._sleep(self.config.retry_delay)
        return _as_dicts(source.provider, kind, records, attempt), attempt


def _as_dicts(
    provider: str,
    kind: RecordKind,
    records: Any,
    attempt: int,
) -> list[dict[str, Any]]:
    """Copy fetched records into plain dicts.

    A source that hands back anything other than a sequence of mappings is
    treated as a vendor failure; retrying would return the same payload.
    """
    context = {"kind": kind.value, "attempts": attempt}
    if records is None or isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Iterable):
        raise IntegrationError(
            f"{provider} returned {type(records).__name__} instead of a list of {kind.value} records",
            provider=provider,
            operation="fetch_records",
            details=context,
        )

    rows = []
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise IntegrationError(
                f"{provider} returned a {type(record).__name__} {kind.value} record at position {index}",
                provider=provider,
                operation="fetch_records",
                details={**context, "index": index},
            )
        rows.append(dict(record))
    return rows


def _elapsed_ms(started: datetime, completed: datetime) -> float:
    return max(0.0, (completed - started).total_seconds() * 1000)


__all__ = [
    "SyncStatus",
    "SyncResult",
    "RecordSource",
    "StaticRecordSource",
    "check_credentials",
    "connection_status_for",
    "ERPSynchronizer",
]
