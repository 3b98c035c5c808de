"""Tests for book exports."""

from datetime import datetime

import pytest

from livro_core.book_exporter import BookExporter, export_book, export_file_name
from livro_core.exceptions import UnsupportedFormatError
from livro_core.models import ExportFormat


@pytest.fixture
def rows() -> list[dict]:
    return [
        {"data": "15/01/2025", "descricao": 'Venda "balcão"', "valor": "100.00"},
        {"data": "16/01/2025", "descricao": "Compra de material", "valor": None},
    ]


@pytest.fixture
def exporter() -> BookExporter:
    return BookExporter(clock=lambda: datetime(2025, 3, 10, 14, 5, 9))


class TestBookExporter:

    def test_csv(self, exporter: BookExporter, rows: list[dict]):
        exported = exporter.export(rows, "Livro Caixa", format="csv")

        assert exported.filename == "Livro_Caixa.csv"
        assert exported.media_type == "text/csv;charset=utf-8"
        assert exported.record_count == 2
        assert exported.content == (
            "data,descricao,valor\n"
            '"15/01/2025","Venda ""balcão""","100.00"\n'
            '"16/01/2025","Compra de material",""'
        )

    def test_excel(self, exporter: BookExporter, rows: list[dict]):
        exported = exporter.export(rows, "Livro Caixa", format=ExportFormat.EXCEL)

        assert exported.filename == "Livro_Caixa.xls"
        assert exported.media_type == "application/vnd.ms-excel"
        assert exported.content.split("\n") == [
            "data\tdescricao\tvalor",
            '15/01/2025\tVenda "balcão"\t100.00',
            "16/01/2025\tCompra de material\t",
        ]

    def test_text(self, exporter: BookExporter, rows: list[dict]):
        exported = exporter.export(rows, "Livro Registro de Compras", format="TEXT")

        assert exported.filename == "Livro_Registro_de_Compras.txt"
        assert exported.content.split("\n") == [
            "Livro Registro de Compras",
            "",
            "Relatório gerado em: 10/03/2025, 14:05:09",
            "",
            "data | descricao | valor",
            "-" * len("data | descricao | valor"),
            '15/01/2025 | Venda "balcão" | 100.00',
            "16/01/2025 | Compra de material | ",
            "",
        ]

    def test_pdf(self, exporter: BookExporter, rows: list[dict]):
        exported = exporter.export(rows, "Livro Caixa", format="pdf")

        assert exported.filename == "Livro_Caixa.pdf"
        assert exported.media_type == "application/pdf"
        assert isinstance(exported.content, bytes)
        assert exported.content.startswith(b"%PDF")

    def test_pdf_is_default(self, rows: list[dict]):
        exported = export_book(rows, "Livro Caixa")

        assert exported.filename.endswith(".pdf")

    def test_empty_rows(self, exporter: BookExporter):
        csv_file = exporter.export([], "Livro Caixa", format="csv")
        pdf_file = exporter.export([], "Livro Caixa", format="pdf")

        assert csv_file.content == ""
        assert csv_file.record_count == 0
        assert pdf_file.as_bytes().startswith(b"%PDF")

    def test_as_bytes(self, exporter: BookExporter, rows: list[dict]):
        exported = exporter.export(rows, "Livro Caixa", format="csv")

        assert exported.as_bytes() == exported.content.encode("utf-8")

    def test_unsupported_format(self, exporter: BookExporter, rows: list[dict]):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            exporter.export(rows, "Livro Caixa", format="docx")

        assert exc_info.value.supported == ["csv", "excel", "text", "pdf"]


class TestExportFileName:

    def test_whitespace_runs_collapsed(self):
        name = export_file_name("Livro  Registro de\tInventário", ExportFormat.TEXT)

        assert name == "Livro_Registro_de_Inventário.txt"
