"""Tests for structural SPED validation."""

from datetime import datetime, timezone

import pytest

from livro_core import DocumentType, RegulatoryBook, encode, validate
from livro_core.exceptions import UnsupportedFormatError
from livro_core.models import CompanyConfig, EncodedFile


def fixed_clock() -> datetime:
    return datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def company() -> CompanyConfig:
    return CompanyConfig(
        tax_id="12345678000190",
        legal_name="Mercadinho Boa Vista ME",
        municipality="Recife",
        state_code="PE",
        period_start="2025-01-01",
        period_end="2025-12-31",
    )


def encoded(document_type: DocumentType, company: CompanyConfig, records=None) -> EncodedFile:
    return encode(
        RegulatoryBook(document_type=document_type, records=records or [], company=company),
        clock=fixed_clock,
    )


class TestValidate:

    @pytest.mark.parametrize("document_type", list(DocumentType))
    def test_encoded_files_are_valid(self, company: CompanyConfig, document_type: DocumentType):
        records = [
            {"tipo": "receita", "valor": "10"},
            {"tipo": "pis_cofins", "data": "2025-01-02", "baseCalculo": "10"},
            {"data": "2025-01-03", "valor": "7"},
        ]
        result = validate(encoded(document_type, company, records).text, document_type)

        assert result.valid is True
        assert result.errors == []

    def test_accepts_encoded_file(self, company: CompanyConfig):
        result = validate(encoded(DocumentType.ECD, company), "ECD")

        assert result.valid is True

    def test_empty_content(self):
        result = validate("", DocumentType.ECD)

        assert result.valid is False
        assert result.errors == [
            "File must start with register 0000",
            "File must end with register 9999",
            "ECD file must contain register 0001",
        ]

    def test_wrong_line_count(self, company: CompanyConfig):
        text = encoded(DocumentType.ECF, company).text.replace("|9999|4|", "|9999|6|")

        result = validate(text, DocumentType.ECF)

        assert result.valid is False
        assert result.errors == ["Register 9999 declares 6 lines but the file has 4"]

    def test_missing_marker_register(self, company: CompanyConfig):
        text = encoded(DocumentType.ECF, company).text

        result = validate(text, DocumentType.ECD)

        assert result.errors == ["ECD file must contain register 0001"]

    def test_efd_marker(self, company: CompanyConfig):
        text = encoded(DocumentType.ECD, company).text

        result = validate(text, "EFD_CONTRIBUICOES")

        assert result.errors == ["EFD_CONTRIBUICOES file must contain register 0110"]

    def test_missing_opening_register(self, company: CompanyConfig):
        lines = encoded(DocumentType.ECF, company).lines
        text = "".join(f"{line}\n" for line in lines[1:])

        result = validate(text, DocumentType.ECF)

        assert "File must start with register 0000" in result.errors

    def test_closing_register_must_be_followed_by_newline(self, company: CompanyConfig):
        """The second-to-last newline-separated field must be the closing register."""
        text = encoded(DocumentType.ECF, company).text.rstrip("\n")

        result = validate(text, DocumentType.ECF)

        assert result.errors == ["File must end with register 9999"]

    def test_leading_blank_lines_ignored(self, company: CompanyConfig):
        text = "\n\n" + encoded(DocumentType.ECF, company).text

        assert validate(text, DocumentType.ECF).valid is True

    def test_non_numeric_count(self, company: CompanyConfig):
        text = encoded(DocumentType.ECF, company).text.replace("|9999|4|", "|9999|x|")

        result = validate(text, DocumentType.ECF)

        assert result.errors == ["Register 9999 must declare the line count"]

    def test_unsupported_document_type(self, company: CompanyConfig):
        with pytest.raises(UnsupportedFormatError):
            validate(encoded(DocumentType.ECD, company).text, "EFD_ICMS")
