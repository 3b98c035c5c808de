"""Build regulatory books and export rows from synchronized ERP data.

ERP records are vendor shaped (`date`, `value`, `customer`...). This module
maps them to the record shape the SPED encoder reads (`data`, `valor`,
`tipo`...) and to the row layout of each fiscal book.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Optional

import structlog
from pydantic import BaseModel

from livro_core.exceptions import UnsupportedFormatError
from livro_core.formatting import format_brl, format_date, parse_amount
from livro_core.models import CompanyConfig, DocumentType, RegulatoryBook
from livro_integrations.interfaces.types import ERPData

logger = structlog.get_logger()

# PIS/COFINS cumulative regime rates
PIS_RATE = Decimal("0.0065")
COFINS_RATE = Decimal("0.03")
CENTS = Decimal("0.01")


class BookDefinition(BaseModel):
    """A fiscal book the company keeps."""
    name: str
    description: str
    required: bool


BOOK_CATALOG: list[BookDefinition] = [
    BookDefinition(
        name="Livro Caixa",
        description="Registro de todas as movimentações financeiras",
        required=True,
    ),
    BookDefinition(
        name="Livro Registro de Inventário",
        description="Controle de estoque e inventário",
        required=True,
    ),
    BookDefinition(
        name="Livro Registro de Compras",
        description="Registro de todas as compras realizadas",
        required=True,
    ),
    BookDefinition(
        name="Livro Registro de Vendas",
        description="Registro de todas as vendas realizadas",
        required=False,
    ),
    BookDefinition(
        name="Livro de Apuração do Lucro Real",
        description="Para empresas optantes pelo Lucro Real",
        required=False,
    ),
]


def sped_type_for_book(book_name: str) -> DocumentType:
    """SPED document that carries a book.

    Livro Caixa and Registro de Inventário go to the ECD, the Lucro Real
    book to the ECF, and everything else to EFD-Contribuições.
    """
    if "Caixa" in book_name or "Inventário" in book_name:
        return DocumentType.ECD
    if "Lucro" in book_name:
        return DocumentType.ECF
    return DocumentType.EFD_CONTRIBUICOES


# =============================================================================
# SPED RECORDS
# =============================================================================

def _iso_day(value: Any) -> Optional[str]:
    """First ten characters of an ISO timestamp: "2025-01-15"."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()[:10]
    if isinstance(value, str) and value.strip():
        return value.strip()[:10]
    return None


def _abs_amount(value: Any) -> Optional[Decimal]:
    amount = parse_amount(value)
    return None if amount is None else abs(amount)


def _document_number(
    record: Mapping[str, Any],
    prefix: str = "NF",
    width: int = 6,
) -> Optional[str]:
    record_id = record.get("id")
    if record_id is None or record_id == "":
        return None
    return f"{prefix}{str(record_id).zfill(width)}"


def _ecd_record(entry: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "data": _iso_day(entry.get("date")),
        "descricao": entry.get("description"),
        "historico": entry.get("description"),
        "valor": _abs_amount(entry.get("value")),
        "tipo": "credito" if entry.get("type") == "receita" else "debito",
    }


def _ecf_record(entry: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "tipo": entry.get("type"),
        "valor": _abs_amount(entry.get("value")),
        "descricao": entry.get("description"),
    }


def _efd_record(sale: Mapping[str, Any]) -> dict[str, Any]:
    base = _abs_amount(sale.get("value")) or Decimal("0")
    return {
        "tipo": "pis_cofins",
        "data": _iso_day(sale.get("date")),
        "numero": _document_number(sale),
        "baseCalculo": base,
        "valorPIS": (base * PIS_RATE).quantize(CENTS, rounding=ROUND_HALF_UP),
        "valorCOFINS": (base * COFINS_RATE).quantize(CENTS, rounding=ROUND_HALF_UP),
    }


def build_regulatory_book(
    data: ERPData,
    document_type: Any,
    company: CompanyConfig,
) -> RegulatoryBook:
    """
    Map synchronized records to a regulatory book.

    ECD and ECF books are built from financial records; EFD-Contribuições
    from sales. Record order is preserved.

    Args:
        data: Synchronized ERP data
        document_type: Target SPED document
        company: Company identification

    Returns:
        RegulatoryBook ready for the SPED encoder

    Raises:
        UnsupportedFormatError: If the document type is not supported
    """
    doc_type = DocumentType.parse(document_type)
    if doc_type == DocumentType.ECD:
        records = [_ecd_record(entry) for entry in data.financial]
    elif doc_type == DocumentType.ECF:
        records = [_ecf_record(entry) for entry in data.financial]
    else:
        records = [_efd_record(sale) for sale in data.sales]

    logger.info("regulatory_book_built", document_type=doc_type.value, records=len(records))
    return RegulatoryBook(document_type=doc_type, records=records, company=company)


# =============================================================================
# BOOK ROWS
# =============================================================================

def _br_date(value: Any) -> str:
    """Render a date as dd/mm/yyyy; unusable dates render empty."""
    compact = format_date(value)
    if len(compact) != 8 or not compact.isdigit():
        return ""
    return f"{compact[6:8]}/{compact[4:6]}/{compact[0:4]}"


def _cash_rows(data: ERPData) -> list[dict[str, str]]:
    rows = []
    balance = Decimal("0")
    for entry in data.financial:
        amount = _abs_amount(entry.get("value")) or Decimal("0")
        incoming = entry.get("type") == "receita"
        balance += amount if incoming else -amount
        rows.append({
            "data": _br_date(entry.get("date")),
            "descricao": str(entry.get("description") or ""),
            "entrada": format_brl(amount) if incoming else "",
            "saida": "" if incoming else format_brl(amount),
            "saldo": format_brl(balance),
        })
    return rows


def _inventory_rows(data: ERPData) -> list[dict[str, str]]:
    rows = []
    for item in data.inventory:
        quantity = parse_amount(item.get("quantity")) or Decimal("0")
        unit_value = parse_amount(item.get("unitValue")) or Decimal("0")
        rows.append({
            "codigo": _document_number(item, prefix="PROD", width=4) or "",
            "produto": str(item.get("product") or ""),
            "quantidade": f"{quantity.normalize():f}",
            "valor_unitario": format_brl(unit_value),
            "valor_total": format_brl(quantity * unit_value),
        })
    return rows


def _purchase_rows(data: ERPData) -> list[dict[str, str]]:
    return [
        {
            "data": _br_date(purchase.get("date")),
            "fornecedor": str(purchase.get("supplier") or ""),
            "nota_fiscal": _document_number(purchase) or "",
            "valor": format_brl(purchase.get("value")),
            "itens": str(purchase.get("items") or ""),
        }
        for purchase in data.purchases
    ]


def _sales_rows(data: ERPData) -> list[dict[str, str]]:
    return [
        {
            "data": _br_date(sale.get("date")),
            "cliente": str(sale.get("customer") or ""),
            "nota_fiscal": _document_number(sale) or "",
            "valor": format_brl(sale.get("value")),
            "itens": str(sale.get("items") or ""),
        }
        for sale in data.sales
    ]


def _profit_rows(data: ERPData) -> list[dict[str, str]]:
    return [
        {
            "data": _br_date(entry.get("date")),
            "descricao": str(entry.get("description") or ""),
            "tipo": str(entry.get("type") or ""),
            "valor": format_brl(_abs_amount(entry.get("value"))),
        }
        for entry in data.financial
    ]


def book_rows(data: ERPData, book_name: str) -> list[dict[str, str]]:
    """
    Rows of a fiscal book, ready for the BookExporter.

    Args:
        data: Synchronized ERP data
        book_name: One of the BOOK_CATALOG names

    Returns:
        One mapping per line; column order is the export column order

    Raises:
        UnsupportedFormatError: If no row layout exists for the book
    """
    if "Caixa" in book_name:
        return _cash_rows(data)
    if "Inventário" in book_name:
        return _inventory_rows(data)
    if "Compras" in book_name:
        return _purchase_rows(data)
    if "Vendas" in book_name:
        return _sales_rows(data)
    if "Lucro" in book_name:
        return _profit_rows(data)
    raise UnsupportedFormatError(
        f"No row layout for book: {book_name!r}",
        format_name=book_name,
        supported=[book.name for book in BOOK_CATALOG],
    )
