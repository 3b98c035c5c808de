"""Tests for the PGDAS-D and DEFIS summaries."""

from decimal import Decimal

import pytest

from livro_core import SimplesNacionalCalculator, TaxCalculationInput
from livro_core.exceptions import InvalidInputError, UnsupportedFormatError
from livro_core.models import DEFISInput
from livro_core.report_generator import (
    SimplesReportGenerator,
    format_percent,
    render_defis_summary,
    render_pgdas_summary,
)


@pytest.fixture
def das_input() -> TaxCalculationInput:
    return TaxCalculationInput(
        period_id="2025-03",
        category="I",
        month_revenue="30000",
        trailing_twelve_month_revenue="200000",
    )


@pytest.fixture
def defis() -> DEFISInput:
    return DEFISInput(
        calendar_year=2024,
        annual_gross_revenue="480000",
        accounting_profit="-1500",
        profit_distribution="0",
        employees_on_december_31=3,
    )


class TestPGDASSummary:

    def test_text_summary(self, das_input: TaxCalculationInput):
        result = SimplesNacionalCalculator().calculate(das_input)
        summary = SimplesReportGenerator().pgdas_summary(das_input, result)

        assert summary.filename == "PGDAS_202503.txt"
        assert summary.media_type.startswith("text/plain")
        lines = summary.content.split("\n")
        assert lines[0] == "PGDAS-D - Resumo do Cálculo"
        assert "Competência: 2025-03" in lines
        assert "Anexo: I" in lines
        assert "Receita do mês: R$ 30000.00" in lines
        assert "RBT12: R$ 200000.00" in lines
        assert "Alíquota nominal: 7.3%" in lines
        assert "Parcela a deduzir: R$ 5940.00" in lines
        assert "Alíquota efetiva: 4.33%" in lines
        assert "DAS devido: R$ 1299.00" in lines

    def test_markdown_summary(self, das_input: TaxCalculationInput):
        result = SimplesNacionalCalculator().calculate(das_input)
        summary = render_pgdas_summary(das_input, result, format="markdown")

        assert summary.filename == "PGDAS_202503.md"
        assert summary.content.startswith("# PGDAS-D - Resumo do Cálculo\n")
        assert "| DAS devido | R$ 1299.00 |" in summary.content
        assert summary.record_count == 8

    def test_unsupported_format(self, das_input: TaxCalculationInput):
        result = SimplesNacionalCalculator().calculate(das_input)

        with pytest.raises(UnsupportedFormatError) as exc_info:
            render_pgdas_summary(das_input, result, format="pdf")

        assert exc_info.value.supported == ["text", "markdown"]


class TestDEFISSummary:

    def test_text_summary(self, defis: DEFISInput):
        summary = render_defis_summary(defis)

        assert summary.filename == "DEFIS_2024.txt"
        lines = summary.content.split("\n")
        assert lines[0] == "DEFIS - Declaração de Informações Socioeconômicas e Fiscais"
        assert "Ano-calendário: 2024" in lines
        assert "Receita bruta anual: R$ 480000.00" in lines
        assert "Lucro contábil: R$ -1500.00" in lines
        assert "Distribuição de lucros: R$ 0.00" in lines
        assert "Empregados em 31/12: 3" in lines

    def test_markdown_summary(self, defis: DEFISInput):
        summary = render_defis_summary(defis, format="markdown")

        assert summary.filename == "DEFIS_2024.md"
        assert "| Ano-calendário | 2024 |" in summary.content


class TestDEFISInput:

    def test_negative_revenue_rejected(self):
        with pytest.raises(InvalidInputError):
            DEFISInput(
                calendar_year=2024,
                annual_gross_revenue="-1",
                accounting_profit="0",
                profit_distribution="0",
            )

    def test_year_range(self):
        with pytest.raises(ValueError):
            DEFISInput(
                calendar_year=1999,
                annual_gross_revenue="0",
                accounting_profit="0",
                profit_distribution="0",
            )


class TestFormatPercent:

    @pytest.mark.parametrize("value, expected", [
        (Decimal("4.3300"), "4.33"),
        (Decimal("4.0000"), "4"),
        (Decimal("19.0"), "19"),
        (Decimal("100"), "100"),
        (Decimal("0"), "0"),
    ])
    def test_trailing_zeros_dropped(self, value, expected):
        assert format_percent(value) == expected
