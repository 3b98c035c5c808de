"""Export of bookkeeping books (livros contábeis) to downloadable files.

Supported formats:
- csv: comma separated, values quoted
- excel: tab separated, opened by spreadsheet tools as .xls
- text: fixed header with generation timestamp and " | " separated columns
- pdf: tabular PDF rendered with reportlab
"""

import csv
import io
import re
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Sequence

import structlog
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .models import ExportedFile, ExportFormat

logger = structlog.get_logger()

MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv;charset=utf-8",
    ExportFormat.EXCEL: "application/vnd.ms-excel",
    ExportFormat.TEXT: "text/plain;charset=utf-8",
    ExportFormat.PDF: "application/pdf",
}

EXTENSIONS = {
    ExportFormat.CSV: "csv",
    ExportFormat.EXCEL: "xls",
    ExportFormat.TEXT: "txt",
    ExportFormat.PDF: "pdf",
}

TIMESTAMP_FORMAT = "%d/%m/%Y, %H:%M:%S"


def export_file_name(book_name: str, format: ExportFormat) -> str:
    """Book name with whitespace runs replaced by underscores, plus extension."""
    stem = re.sub(r"\s+", "_", book_name.strip())
    return f"{stem}.{EXTENSIONS[format]}"


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


class BookExporter:
    """
    Export book rows (one mapping per record) to a file.

    Columns are taken from the keys of the first row, in insertion order.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the exporter.

        Args:
            clock: Returns "now" for the generation timestamp (default: local now)
        """
        self._clock = clock or datetime.now

    def export(
        self,
        rows: Sequence[Mapping[str, Any]],
        book_name: str,
        format: Any = ExportFormat.PDF,
    ) -> ExportedFile:
        """
        Export rows to the requested format.

        Args:
            rows: Book records
            book_name: Display name, also used for the file name
            format: ExportFormat or its string value

        Returns:
            ExportedFile; content is bytes for PDF and str otherwise

        Raises:
            UnsupportedFormatError: If the format is not supported
        """
        fmt = ExportFormat.parse(format)
        headers = list(rows[0].keys()) if rows else []

        if fmt == ExportFormat.CSV:
            content: Any = self._format_csv(headers, rows)
        elif fmt == ExportFormat.EXCEL:
            content = self._format_excel(headers, rows)
        elif fmt == ExportFormat.TEXT:
            content = self._format_text(headers, rows, book_name)
        else:
            content = self._format_pdf(headers, rows, book_name)

        filename = export_file_name(book_name, fmt)
        logger.info("book_exported", book=book_name, format=fmt.value, records=len(rows))

        return ExportedFile(
            filename=filename,
            media_type=MEDIA_TYPES[fmt],
            content=content,
            record_count=len(rows),
        )

    def _format_csv(self, headers: list[str], rows: Sequence[Mapping[str, Any]]) -> str:
        """Header line unquoted, every data value quoted."""
        if not headers:
            return ""
        buffer = io.StringIO()
        buffer.write(",".join(headers) + "\n")
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerows([_cell(row.get(h)) for h in headers] for row in rows)
        return buffer.getvalue().rstrip("\n")

    def _format_excel(self, headers: list[str], rows: Sequence[Mapping[str, Any]]) -> str:
        """Tab separated values."""
        lines = ["\t".join(headers)]
        for row in rows:
            lines.append("\t".join(_cell(row.get(h)) for h in headers))
        return "\n".join(lines)

    def _format_text(
        self,
        headers: list[str],
        rows: Sequence[Mapping[str, Any]],
        book_name: str,
    ) -> str:
        """Plain text listing with a generation timestamp."""
        header_line = " | ".join(headers)
        output = [
            book_name,
            "",
            f"Relatório gerado em: {self._clock().strftime(TIMESTAMP_FORMAT)}",
            "",
            header_line,
            "-" * len(header_line),
        ]
        for row in rows:
            output.append(" | ".join(_cell(row.get(h)) for h in headers))
        return "\n".join(output) + "\n"

    def _format_pdf(
        self,
        headers: list[str],
        rows: Sequence[Mapping[str, Any]],
        book_name: str,
    ) -> bytes:
        """Tabular PDF using reportlab."""
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=landscape(A4),
            rightMargin=0.5 * inch,
            leftMargin=0.5 * inch,
            topMargin=0.5 * inch,
            bottomMargin=0.5 * inch,
            title=book_name,
        )

        styles = getSampleStyleSheet()
        styles.add(ParagraphStyle(
            name='BookTitle',
            parent=styles['Heading1'],
            fontSize=16,
            spaceAfter=12,
            alignment=TA_CENTER,
            textColor=colors.HexColor('#1a365d'),
        ))

        elements = [
            Paragraph(book_name, styles['BookTitle']),
            Paragraph(
                f"Relatório gerado em: {self._clock().strftime(TIMESTAMP_FORMAT)}",
                styles['Normal'],
            ),
            Spacer(1, 0.2 * inch),
        ]

        if headers:
            data = [headers] + [[_cell(row.get(h)) for h in headers] for row in rows]
            table = Table(data, repeatRows=1)
            table.setStyle(TableStyle([
                ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#2c5282')),
                ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
                ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
                ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
                ('FONTSIZE', (0, 0), (-1, -1), 8),
                ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
                ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f7fafc')]),
            ]))
            elements.append(table)
        else:
            elements.append(Paragraph("Nenhum registro no período.", styles['Normal']))

        doc.build(elements)
        return buffer.getvalue()


def export_book(
    rows: Sequence[Mapping[str, Any]],
    book_name: str,
    format: Any = ExportFormat.PDF,
) -> ExportedFile:
    """Export rows with a default BookExporter."""
    return BookExporter().export(rows, book_name, format=format)
