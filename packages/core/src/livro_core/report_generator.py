"""Summary documents for the Simples Nacional obligations.

Generates the PGDAS-D calculation summary and the DEFIS declaration summary
as downloadable text or Markdown files.
"""

from dataclasses import dataclass, field
from decimal import Decimal

import structlog

from .exceptions import UnsupportedFormatError
from .formatting import format_brl
from .models import DEFISInput, ExportedFile, TaxCalculationInput, TaxCalculationResult

logger = structlog.get_logger()

SUMMARY_FORMATS = ("text", "markdown")


def format_percent(value: Decimal) -> str:
    """Render a rate without trailing zeros: 4.0 -> "4", 4.3300 -> "4.33"."""
    return f"{value.normalize():f}"


@dataclass
class SummaryDocument:
    """A titled list of label/value lines."""
    title: str
    lines: list[tuple[str, str]] = field(default_factory=list)

    def add(self, label: str, value: str) -> None:
        self.lines.append((label, value))


class SimplesReportGenerator:
    """
    Generate PGDAS-D and DEFIS summaries.

    Summaries are Portuguese documents handed to the accountant, so labels
    follow the Receita Federal wording.
    """

    def pgdas_summary(
        self,
        data: TaxCalculationInput,
        result: TaxCalculationResult,
        format: str = "text",
    ) -> ExportedFile:
        """
        Build the PGDAS-D calculation summary.

        Args:
            data: The calculation input
            result: The calculation result for that input
            format: "text" or "markdown"

        Returns:
            ExportedFile named PGDAS_YYYYMM.txt (or .md)
        """
        doc = SummaryDocument(title="PGDAS-D - Resumo do Cálculo")
        doc.add("Competência", data.period_id)
        doc.add("Anexo", data.category.value)
        doc.add("Receita do mês", f"R$ {format_brl(data.month_revenue)}")
        doc.add("RBT12", f"R$ {format_brl(data.trailing_twelve_month_revenue)}")
        doc.add("Alíquota nominal", f"{format_percent(result.nominal_rate_percent)}%")
        doc.add("Parcela a deduzir", f"R$ {format_brl(result.deduction_amount)}")
        doc.add("Alíquota efetiva", f"{format_percent(result.effective_rate_percent)}%")
        doc.add("DAS devido", f"R$ {format_brl(result.amount_due)}")

        stem = f"PGDAS_{data.period_id.replace('-', '')}"
        return self._render(doc, stem, format)

    def defis_summary(self, defis: DEFISInput, format: str = "text") -> ExportedFile:
        """
        Build the DEFIS declaration summary.

        Args:
            defis: The annual declaration data
            format: "text" or "markdown"

        Returns:
            ExportedFile named DEFIS_{year}.txt (or .md)
        """
        doc = SummaryDocument(
            title="DEFIS - Declaração de Informações Socioeconômicas e Fiscais"
        )
        doc.add("Ano-calendário", str(defis.calendar_year))
        doc.add("Receita bruta anual", f"R$ {format_brl(defis.annual_gross_revenue)}")
        doc.add("Lucro contábil", f"R$ {format_brl(defis.accounting_profit)}")
        doc.add("Distribuição de lucros", f"R$ {format_brl(defis.profit_distribution)}")
        doc.add("Empregados em 31/12", str(defis.employees_on_december_31))

        return self._render(doc, f"DEFIS_{defis.calendar_year}", format)

    def _render(self, doc: SummaryDocument, stem: str, format: str) -> ExportedFile:
        if format == "text":
            content = self._format_text(doc)
            filename, media_type = f"{stem}.txt", "text/plain;charset=utf-8"
        elif format == "markdown":
            content = self._format_markdown(doc)
            filename, media_type = f"{stem}.md", "text/markdown;charset=utf-8"
        else:
            raise UnsupportedFormatError(
                f"Unsupported summary format: {format!r}",
                format_name=format,
                supported=list(SUMMARY_FORMATS),
            )

        logger.info("summary_generated", title=doc.title, filename=filename)
        return ExportedFile(
            filename=filename,
            media_type=media_type,
            content=content,
            record_count=len(doc.lines),
        )

    def _format_text(self, doc: SummaryDocument) -> str:
        """Format summary as plain text, one "Label: value" per line."""
        return "\n".join([doc.title, *(f"{label}: {value}" for label, value in doc.lines)])

    def _format_markdown(self, doc: SummaryDocument) -> str:
        """Format summary as a Markdown table."""
        output = [f"# {doc.title}", "", "| Campo | Valor |", "|---|---|"]
        output.extend(f"| {label} | {value} |" for label, value in doc.lines)
        return "\n".join(output) + "\n"


def render_pgdas_summary(
    data: TaxCalculationInput,
    result: TaxCalculationResult,
    format: str = "text",
) -> ExportedFile:
    """Shortcut for SimplesReportGenerator().pgdas_summary()."""
    return SimplesReportGenerator().pgdas_summary(data, result, format=format)


def render_defis_summary(defis: DEFISInput, format: str = "text") -> ExportedFile:
    """Shortcut for SimplesReportGenerator().defis_summary()."""
    return SimplesReportGenerator().defis_summary(defis, format=format)
