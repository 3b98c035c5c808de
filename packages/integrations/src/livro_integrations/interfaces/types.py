"""ERP integration data types.

This module defines the data contracts between ERP record sources and the
book generation layer:
1. Provider catalog (which ERPs exist and which credentials they need)
2. Connection status owned by the caller
3. Synchronized data (ERPData), one per provider

Records inside ERPData stay as plain mappings: each vendor names its fields
differently and the book builder reads them leniently.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from livro_core.exceptions import ConfigurationError


# =============================================================================
# ENUMERATIONS
# =============================================================================


class ERPProvider(str, Enum):
    """ERP vendors with a known integration."""

    BLING = "bling"
    TINY = "tiny"
    OMIE = "omie"
    GRANATUM = "granatum"
    CONTA_AZUL = "conta_azul"
    SAGE = "sage"


class ConnectionStatus(str, Enum):
    """State of the connection to one provider."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
    TESTING = "testing"


class RecordKind(str, Enum):
    """Record collections fetched from every provider."""

    SALES = "sales"
    PURCHASES = "purchases"
    INVENTORY = "inventory"
    FINANCIAL = "financial"


# =============================================================================
# PROVIDER CATALOG
# =============================================================================


class ERPOption(BaseModel):
    """Static description of a provider."""

    provider: ERPProvider
    label: str
    api_endpoint: str
    required_fields: list[str] = Field(min_length=1)
    description: str = ""


PROVIDER_CATALOG: dict[ERPProvider, ERPOption] = {
    option.provider: option
    for option in (
        ERPOption(
            provider=ERPProvider.BLING,
            label="Bling ERP",
            api_endpoint="https://bling.com.br/Api/v2/",
            required_fields=["apiKey"],
            description="ERP completo para e-commerce e varejo",
        ),
        ERPOption(
            provider=ERPProvider.TINY,
            label="Tiny ERP",
            api_endpoint="https://api.tiny.com.br/api2/",
            required_fields=["token", "formato"],
            description="Gestão empresarial integrada",
        ),
        ERPOption(
            provider=ERPProvider.OMIE,
            label="Omie",
            api_endpoint="https://app.omie.com.br/api/v1/",
            required_fields=["appKey", "appSecret"],
            description="Sistema de gestão empresarial na nuvem",
        ),
        ERPOption(
            provider=ERPProvider.GRANATUM,
            label="Granatum",
            api_endpoint="https://api.granatum.com.br/v1/",
            required_fields=["apiKey"],
            description="Controle financeiro empresarial",
        ),
        ERPOption(
            provider=ERPProvider.CONTA_AZUL,
            label="ContaAzul",
            api_endpoint="https://api.contaazul.com/",
            required_fields=["clientId", "clientSecret"],
            description="Gestão financeira para PMEs",
        ),
        ERPOption(
            provider=ERPProvider.SAGE,
            label="Sage",
            api_endpoint="https://api.sage.com/v1/",
            required_fields=["apiKey", "companyId"],
            description="Soluções de gestão empresarial",
        ),
    )
}


def get_provider(value: Any) -> ERPOption:
    """Look up a provider in the catalog.

    Raises:
        ConfigurationError: If the provider is not in the catalog
    """
    if isinstance(value, ERPProvider):
        return PROVIDER_CATALOG[value]
    try:
        return PROVIDER_CATALOG[ERPProvider(str(value).strip().lower())]
    except ValueError:
        raise ConfigurationError(
            f"Unknown ERP provider: {value!r}",
            config_key="provider",
            expected=", ".join(p.value for p in ERPProvider),
            actual=value,
        )


# =============================================================================
# SYNCHRONIZED DATA
# =============================================================================


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ERPData(BaseModel):
    """Records synchronized from one provider."""

    sales: list[dict[str, Any]] = Field(default_factory=list)
    purchases: list[dict[str, Any]] = Field(default_factory=list)
    inventory: list[dict[str, Any]] = Field(default_factory=list)
    financial: list[dict[str, Any]] = Field(default_factory=list)
    last_sync: datetime = Field(default_factory=_utc_now)

    def records(self, kind: RecordKind) -> list[dict[str, Any]]:
        """Return the collection for a record kind."""
        return getattr(self, RecordKind(kind).value)

    @property
    def record_count(self) -> int:
        """Total records across all collections."""
        return sum(len(self.records(kind)) for kind in RecordKind)


def merge_erp_data(items: list[ERPData]) -> ERPData:
    """Concatenate the collections of several providers, in the given order."""
    merged = ERPData(last_sync=max((i.last_sync for i in items), default=_utc_now()))
    for item in items:
        for kind in RecordKind:
            merged.records(kind).extend(item.records(kind))
    return merged


__all__ = [
    "ERPProvider",
    "ConnectionStatus",
    "RecordKind",
    "ERPOption",
    "PROVIDER_CATALOG",
    "get_provider",
    "ERPData",
    "merge_erp_data",
]
