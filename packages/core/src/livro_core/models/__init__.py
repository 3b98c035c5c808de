"""Data models for livro-core.

This package provides:
- Simples Nacional inputs and results (simples.py)
- SPED books, encoded files and book exports (books.py)
"""

from livro_core.models.simples import (
    Anexo,
    AuditEntry,
    DEFISInput,
    TaxCalculationInput,
    TaxCalculationResult,
    coerce_non_negative_amount,
)
from livro_core.models.books import (
    CompanyConfig,
    DocumentType,
    EncodedFile,
    ExportedFile,
    ExportFormat,
    LedgerRecord,
    RegulatoryBook,
    ValidationResult,
)

__all__ = [
    # Simples Nacional
    "Anexo",
    "AuditEntry",
    "DEFISInput",
    "TaxCalculationInput",
    "TaxCalculationResult",
    "coerce_non_negative_amount",
    # SPED and exports
    "CompanyConfig",
    "DocumentType",
    "EncodedFile",
    "ExportedFile",
    "ExportFormat",
    "LedgerRecord",
    "RegulatoryBook",
    "ValidationResult",
]
