"""SPED file generation for ECD, ECF and EFD-Contribuições.

Each document type has a fixed register grammar:

    |0000|...|            opening register (company + generation date)
    |....|...|            block-opening / period registers
    |XXXX|...|            body registers, one group per ledger record
    |9999|N|              closing register, N = total lines in the file

Layouts follow the Receita Federal manuals (ECD leiaute 014, ECF leiaute
0406, EFD-Contribuições leiaute 018), reduced to the registers this
application fills in.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Union

import structlog

from .formatting import format_date, format_text, format_value, parse_amount
from .models import (
    CompanyConfig,
    DocumentType,
    EncodedFile,
    LedgerRecord,
    RegulatoryBook,
)

logger = structlog.get_logger()

# Placeholders for missing record fields
DEFAULT_ACCOUNT = "1.1.01.01"
DEFAULT_ACCOUNT_DESCRIPTION = "Conta Genérica"
DEFAULT_ACCOUNT_LEVEL = "4"
DEFAULT_ENTRY_HISTORY = "Lançamento contábil"
DEFAULT_REVENUE_DESCRIPTION = "Receita"
DEFAULT_EXPENSE_DESCRIPTION = "Despesa"
DEFAULT_DOCUMENT_NUMBER = "1"

# Layout versions written in register 0000
ECD_LAYOUT = "014"
ECF_LAYOUT = "0406"
EFD_CONTRIBUICOES_LAYOUT = "018"

OPENING_REGISTER = "0000"
CLOSING_REGISTER = "9999"


def register(code: str, *fields: Any) -> str:
    """Build one register line: |CODE|field1|field2|...|"""
    return "|" + "|".join([code, *(str(f) for f in fields)]) + "|"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SPEDEncoder:
    """
    Serialize a RegulatoryBook into SPED pipe-delimited text.

    Encoding never fails on an individual record: missing or malformed
    fields take documented defaults, so a single noisy record synchronized
    from an ERP cannot abort the whole book.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the encoder.

        Args:
            clock: Returns "now" for the generation date fields (default: UTC now)
        """
        self._clock = clock or _utc_now
        self._writers: dict[DocumentType, Callable[..., tuple[list[str], int]]] = {
            DocumentType.ECD: self._write_ecd,
            DocumentType.ECF: self._write_ecf,
            DocumentType.EFD_CONTRIBUICOES: self._write_efd_contribuicoes,
        }

    def encode(self, book: Union[RegulatoryBook, Mapping[str, Any]]) -> EncodedFile:
        """
        Encode a regulatory book.

        Args:
            book: The book, or a JSON-style mapping with the same fields

        Returns:
            EncodedFile whose closing register counts every emitted line

        Raises:
            UnsupportedFormatError: If a mapping names an unsupported document type
        """
        if not isinstance(book, RegulatoryBook):
            book = RegulatoryBook.model_validate(book)

        writer = self._writers[book.document_type]

        generated_at = self._clock()
        lines, skipped = writer(book.company, book.records, format_date(generated_at))
        lines.append(register(CLOSING_REGISTER, len(lines) + 1))

        logger.info(
            "sped_encoded",
            document_type=book.document_type.value,
            records=len(book.records),
            lines=len(lines),
            skipped_records=skipped,
        )

        return EncodedFile(
            document_type=book.document_type,
            lines=lines,
            generated_at=generated_at,
            skipped_records=skipped,
        )

    # -------------------------------------------------------------------------
    # ECD - Escrituração Contábil Digital
    # -------------------------------------------------------------------------

    def _write_ecd(
        self,
        company: CompanyConfig,
        records: list[LedgerRecord],
        today: str,
    ) -> tuple[list[str], int]:
        ie = format_text(company.state_registration)
        lines = [
            register(
                OPENING_REGISTER, ECD_LAYOUT, "0", today, today,
                company.legal_name, company.tax_id, company.state_code,
                ie, company.municipality, "G", "",
            ),
            register("0001", "0"),
            register(
                "0007", company.tax_id, ie, company.legal_name,
                company.municipality, company.state_code,
            ),
            register(
                "0020", format_date(company.period_start),
                format_date(company.period_end), "3", "1", "N", "1,00", "",
            ),
        ]

        for index, record in enumerate(records):
            entry = _as_record(record, index)
            account = format_text(entry.get("conta"), DEFAULT_ACCOUNT)

            # I050 - Plano de contas
            lines.append(register(
                "I050", account,
                format_text(entry.get("descricao"), DEFAULT_ACCOUNT_DESCRIPTION),
                format_text(entry.get("nivel"), DEFAULT_ACCOUNT_LEVEL),
            ))
            # I150 - Saldos periódicos
            lines.append(register("I150", account, format_value(entry.get("saldo")), "D"))

            # I155 - Lançamento, only for dated entries with a value
            entry_date = format_date(entry.get("data"))
            amount = parse_amount(entry.get("valor"))
            if entry_date and amount:
                nature = "C" if entry.get("tipo") == "credito" else "D"
                lines.append(register(
                    "I155", entry_date, index + 1, account,
                    format_value(amount), nature,
                    format_text(entry.get("historico"), DEFAULT_ENTRY_HISTORY),
                ))

        return lines, 0

    # -------------------------------------------------------------------------
    # ECF - Escrituração Contábil Fiscal
    # -------------------------------------------------------------------------

    def _write_ecf(
        self,
        company: CompanyConfig,
        records: list[LedgerRecord],
        today: str,
    ) -> tuple[list[str], int]:
        lines = [
            register(
                OPENING_REGISTER, ECF_LAYOUT, "0", today, today,
                company.legal_name, company.tax_id, "1", "",
            ),
            register(
                "0010", company.tax_id, company.legal_name,
                company.municipality, company.state_code,
            ),
            register(
                "0030", format_date(company.period_start),
                format_date(company.period_end), "1", "1", "0",
            ),
        ]

        skipped = 0
        for index, record in enumerate(records):
            entry = _as_record(record, index)
            kind = entry.get("tipo")
            if kind == "receita":
                lines.append(register(
                    "X290", format_value(entry.get("valor")),
                    format_text(entry.get("descricao"), DEFAULT_REVENUE_DESCRIPTION),
                ))
            elif kind == "despesa":
                lines.append(register(
                    "X291", format_value(entry.get("valor")),
                    format_text(entry.get("descricao"), DEFAULT_EXPENSE_DESCRIPTION),
                ))
            else:
                skipped += 1
                logger.warning("sped_record_skipped", document_type="ECF", index=index, tipo=kind)

        return lines, skipped

    # -------------------------------------------------------------------------
    # EFD-Contribuições (PIS/COFINS)
    # -------------------------------------------------------------------------

    def _write_efd_contribuicoes(
        self,
        company: CompanyConfig,
        records: list[LedgerRecord],
        today: str,
    ) -> tuple[list[str], int]:
        lines = [
            register(
                OPENING_REGISTER, EFD_CONTRIBUICOES_LAYOUT, "1", today, today,
                company.legal_name, company.tax_id, company.state_code,
                format_text(company.state_registration), "A", "",
            ),
            register("0001", "0"),
            register(
                "0010", company.tax_id, company.legal_name,
                company.municipality, company.state_code, "",
            ),
            register(
                "0110", "1", format_date(company.period_start),
                format_date(company.period_end),
            ),
        ]

        skipped = 0
        for index, record in enumerate(records):
            entry = _as_record(record, index)
            kind = entry.get("tipo")
            if kind != "pis_cofins":
                skipped += 1
                logger.warning(
                    "sped_record_skipped",
                    document_type="EFD_CONTRIBUICOES",
                    index=index,
                    tipo=kind,
                )
                continue

            # A100 - Documento fiscal de serviço
            lines.append(register(
                "A100", "0", "1",
                format_date(entry.get("data")),
                format_text(entry.get("numero"), DEFAULT_DOCUMENT_NUMBER),
                "", "", "", "",
                format_value(entry.get("baseCalculo")),
                format_value(entry.get("valorPIS")),
                format_value(entry.get("valorCOFINS")),
            ))

        return lines, skipped


def _as_record(record: Any, index: int) -> Mapping[str, Any]:
    """Return the record as a mapping; non-mapping records encode as empty."""
    if isinstance(record, Mapping):
        return record
    logger.warning("sped_record_not_a_mapping", index=index, type=type(record).__name__)
    return {}


def encode(
    book: Union[RegulatoryBook, Mapping[str, Any]],
    clock: Optional[Callable[[], datetime]] = None,
) -> EncodedFile:
    """Encode a regulatory book into SPED text."""
    return SPEDEncoder(clock=clock).encode(book)


def sped_file_name(book: RegulatoryBook) -> str:
    """Download name for a SPED file: {TYPE}_{CNPJ}_{period start}.txt"""
    return (
        f"{book.document_type.value}_{book.company.tax_id}_"
        f"{format_date(book.company.period_start)}.txt"
    )
