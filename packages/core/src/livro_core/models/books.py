"""Regulatory book and export data models.

This module provides the structures consumed and produced by the SPED
encoder, the structural validator and the book exporter:
- Company identification for the opening registers
- Regulatory books (document type + ordered ledger records)
- Encoded SPED files and validation results
- Exported book files (CSV, spreadsheet, text, PDF)
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, computed_field, field_validator

from livro_core.exceptions import UnsupportedFormatError


LedgerRecord = dict[str, Any]
"""A heterogeneous ledger line; keys vary by document type."""


class DocumentType(str, Enum):
    """SPED document types supported by the encoder."""
    ECD = "ECD"  # Escrituração Contábil Digital
    ECF = "ECF"  # Escrituração Contábil Fiscal
    EFD_CONTRIBUICOES = "EFD_CONTRIBUICOES"  # EFD PIS/COFINS

    @classmethod
    def parse(cls, value: Any) -> "DocumentType":
        """Resolve a document type, raising UnsupportedFormatError when unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper().replace("-", "_")
            if key == "EFD":
                key = cls.EFD_CONTRIBUICOES.value
            try:
                return cls(key)
            except ValueError:
                pass
        raise UnsupportedFormatError(
            f"Unsupported SPED document type: {value!r}",
            format_name=value,
            supported=[t.value for t in cls],
        )


class ExportFormat(str, Enum):
    """Output formats for book exports."""
    CSV = "csv"
    EXCEL = "excel"
    TEXT = "text"
    PDF = "pdf"

    @classmethod
    def parse(cls, value: Any) -> "ExportFormat":
        """Resolve an export format, raising UnsupportedFormatError when unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnsupportedFormatError(
            f"Unsupported export format: {value!r}",
            format_name=value,
            supported=[f.value for f in cls],
        )


class CompanyConfig(BaseModel):
    """Company identification used in the opening registers.

    Fields are validated for presence only; CNPJ and inscrição estadual
    check digits are the tax authority's concern.
    """

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "tax_id": "12345678000190",
                    "legal_name": "Padaria Pão Quente LTDA",
                    "state_registration": "110042490114",
                    "municipality": "São Paulo",
                    "state_code": "SP",
                    "period_start": "2025-01-01",
                    "period_end": "2025-12-31",
                }
            ]
        }
    }

    tax_id: str = Field(description="CNPJ")
    legal_name: str = Field(description="Razão social")
    state_registration: Optional[str] = Field(
        default=None, description="Inscrição estadual"
    )
    municipality: str = Field(description="Município")
    state_code: str = Field(description="UF")
    period_start: str = Field(description="Início do período (YYYY-MM-DD)")
    period_end: str = Field(description="Fim do período (YYYY-MM-DD)")


class RegulatoryBook(BaseModel):
    """A document type plus the ordered ledger records to encode."""

    document_type: DocumentType
    records: list[Any] = Field(
        default_factory=list,
        description="Ledger records in output order; non-mapping entries encode as empty",
    )
    company: CompanyConfig

    @field_validator("document_type", mode="before")
    @classmethod
    def validate_document_type(cls, v: Any) -> DocumentType:
        """Resolve the document type, raising UnsupportedFormatError when unknown."""
        return DocumentType.parse(v)

    @field_validator("records", mode="before")
    @classmethod
    def coerce_records(cls, v: Any) -> list:
        """Treat a missing record list as empty."""
        return [] if v is None else v


class EncodedFile(BaseModel):
    """A SPED file as an ordered list of register lines."""

    document_type: DocumentType
    lines: list[str]
    generated_at: datetime
    skipped_records: int = Field(
        default=0, ge=0, description="Records with no register in this layout"
    )

    @computed_field
    @property
    def line_count(self) -> int:
        """Number of registers in the file."""
        return len(self.lines)

    @property
    def text(self) -> str:
        """The file contents; every register is newline-terminated."""
        return "".join(f"{line}\n" for line in self.lines)

    def __str__(self) -> str:
        return self.text


class ValidationResult(BaseModel):
    """Outcome of structural SPED validation."""
    valid: bool
    errors: list[str] = Field(default_factory=list)


class ExportedFile(BaseModel):
    """An exported book ready to be written or downloaded."""
    filename: str
    media_type: str
    content: Union[str, bytes]
    record_count: int = Field(ge=0)

    def as_bytes(self, encoding: str = "utf-8") -> bytes:
        """Return the content as bytes."""
        if isinstance(self.content, bytes):
            return self.content
        return self.content.encode(encoding)
