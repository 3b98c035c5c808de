"""Vendor-agnostic ERP interfaces.

This package defines the protocol ERP adapters implement and the data types
they produce. No vendor SDK is imported here.

Available Interfaces:
    RecordSource: Protocol for ERP adapters
    ERPSynchronizer: Fetches all record kinds with retries
    SyncResult: Standardized result of a synchronization run
    SyncStatus: Enum for synchronization status codes

Data Types:
    ERPProvider, ERPOption, PROVIDER_CATALOG: Provider catalog
    ConnectionStatus: Caller-owned connection state
    RecordKind: sales, purchases, inventory, financial
    ERPData: Records synchronized from one provider
"""

from livro_integrations.interfaces.base import (
    # Enumerations
    SyncStatus,
    # Result models
    SyncResult,
    # Protocols and implementations
    RecordSource,
    StaticRecordSource,
    ERPSynchronizer,
    # Credentials
    check_credentials,
    connection_status_for,
)

from livro_integrations.interfaces.types import (
    # Enums
    ERPProvider,
    ConnectionStatus,
    RecordKind,
    # Catalog
    ERPOption,
    PROVIDER_CATALOG,
    get_provider,
    # Data
    ERPData,
    merge_erp_data,
)

__all__ = [
    "SyncStatus",
    "SyncResult",
    "RecordSource",
    "StaticRecordSource",
    "ERPSynchronizer",
    "check_credentials",
    "connection_status_for",
    "ERPProvider",
    "ConnectionStatus",
    "RecordKind",
    "ERPOption",
    "PROVIDER_CATALOG",
    "get_provider",
    "ERPData",
    "merge_erp_data",
]
