"""Tests for the SPED encoder."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from livro_core import DocumentType, RegulatoryBook, SPEDEncoder, encode
from livro_core.exceptions import UnsupportedFormatError
from livro_core.models import CompanyConfig, EncodedFile
from livro_core.sped_encoder import register, sped_file_name


def fixed_clock() -> datetime:
    return datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def company() -> CompanyConfig:
    return CompanyConfig(
        tax_id="12345678000190",
        legal_name="Padaria Pão Quente LTDA",
        state_registration="110042490114",
        municipality="São Paulo",
        state_code="SP",
        period_start="2025-01-01",
        period_end="2025-12-31",
    )


@pytest.fixture
def encoder() -> SPEDEncoder:
    return SPEDEncoder(clock=fixed_clock)


def book(document_type, records, company) -> RegulatoryBook:
    return RegulatoryBook(document_type=document_type, records=records, company=company)


class TestRegister:

    def test_register_line(self):
        assert register("0001", "0") == "|0001|0|"

    def test_empty_fields_kept(self):
        assert register("A100", "0", "", "") == "|A100|0|||"


class TestECD:
    """ECD (Escrituração Contábil Digital)."""

    def test_empty_book(self, encoder: SPEDEncoder, company: CompanyConfig):
        encoded = encoder.encode(book(DocumentType.ECD, [], company))

        assert encoded.lines == [
            "|0000|014|0|20250310|20250310|Padaria Pão Quente LTDA|12345678000190|SP|110042490114|São Paulo|G||",
            "|0001|0|",
            "|0007|12345678000190|110042490114|Padaria Pão Quente LTDA|São Paulo|SP|",
            "|0020|20250101|20251231|3|1|N|1,00||",
            "|9999|5|",
        ]

    def test_dated_entry(self, encoder: SPEDEncoder, company: CompanyConfig):
        record = {
            "conta": "1.1.01.02",
            "descricao": "Caixa",
            "nivel": "4",
            "saldo": "1500.5",
            "data": "2025-01-15",
            "valor": 1500.5,
            "tipo": "credito",
            "historico": "Venda à vista",
        }
        encoded = encoder.encode(book(DocumentType.ECD, [record], company))

        assert encoded.lines[4:] == [
            "|I050|1.1.01.02|Caixa|4|",
            "|I150|1.1.01.02|1500,50|D|",
            "|I155|20250115|1|1.1.01.02|1500,50|C|Venda à vista|",
            "|9999|8|",
        ]

    def test_debit_nature(self, encoder: SPEDEncoder, company: CompanyConfig):
        record = {"data": "2025-01-15", "valor": "10", "tipo": "debito"}
        encoded = encoder.encode(book(DocumentType.ECD, [record], company))

        i155 = [line for line in encoded.lines if line.startswith("|I155|")]
        assert i155 == ["|I155|20250115|1|1.1.01.01|10,00|D|Lançamento contábil|"]

    def test_missing_fields_take_defaults(self, encoder: SPEDEncoder, company: CompanyConfig):
        """A record with no date or value still encodes, without I155."""
        encoded = encoder.encode(book(DocumentType.ECD, [{}], company))

        assert encoded.lines[4:] == [
            "|I050|1.1.01.01|Conta Genérica|4|",
            "|I150|1.1.01.01|0,00|D|",
            "|9999|7|",
        ]

    def test_zero_value_has_no_i155(self, encoder: SPEDEncoder, company: CompanyConfig):
        record = {"data": "2025-01-15", "valor": 0}
        encoded = encoder.encode(book(DocumentType.ECD, [record], company))

        assert not any(line.startswith("|I155|") for line in encoded.lines)

    def test_entry_index_is_record_position(self, encoder: SPEDEncoder, company: CompanyConfig):
        records = [{"data": "2025-01-15", "valor": str(i + 1)} for i in range(3)]
        encoded = encoder.encode(book(DocumentType.ECD, records, company))

        indexes = [line.split("|")[3] for line in encoded.lines if line.startswith("|I155|")]
        assert indexes == ["1", "2", "3"]

    def test_pipe_in_description_does_not_split_register(
        self, encoder: SPEDEncoder, company: CompanyConfig
    ):
        encoded = encoder.encode(book(DocumentType.ECD, [{"descricao": "A|B"}], company))

        assert encoded.lines[4] == "|I050|1.1.01.01|A B|4|"

    def test_non_mapping_record_encodes_as_empty(
        self, encoder: SPEDEncoder, company: CompanyConfig
    ):
        encoded = encoder.encode(book(DocumentType.ECD, ["not a record"], company))

        assert encoded.lines[4] == "|I050|1.1.01.01|Conta Genérica|4|"

    def test_oversized_amounts_treated_as_missing(
        self, encoder: SPEDEncoder, company: CompanyConfig
    ):
        record = {"data": "2025-01-15", "valor": "1e30", "saldo": Decimal("1e40")}
        encoded = encoder.encode(book(DocumentType.ECD, [record], company))

        assert encoded.lines[4:] == [
            "|I050|1.1.01.01|Conta Genérica|4|",
            "|I150|1.1.01.01|0,00|D|",
            "|9999|7|",
        ]


class TestECF:
    """ECF (Escrituração Contábil Fiscal)."""

    def test_revenue_and_expense(self, encoder: SPEDEncoder, company: CompanyConfig):
        records = [
            {"tipo": "receita", "valor": "10000", "descricao": "Vendas"},
            {"tipo": "despesa", "valor": 2500.75},
            {"tipo": "outro", "valor": "1"},
        ]
        encoded = encoder.encode(book(DocumentType.ECF, records, company))

        assert encoded.lines == [
            "|0000|0406|0|20250310|20250310|Padaria Pão Quente LTDA|12345678000190|1||",
            "|0010|12345678000190|Padaria Pão Quente LTDA|São Paulo|SP|",
            "|0030|20250101|20251231|1|1|0|",
            "|X290|10000,00|Vendas|",
            "|X291|2500,75|Despesa|",
            "|9999|6|",
        ]
        assert encoded.skipped_records == 1

    def test_record_order_preserved(self, encoder: SPEDEncoder, company: CompanyConfig):
        records = [{"tipo": "receita", "valor": str(v)} for v in (5, 1, 4, 2, 3)]
        encoded = encoder.encode(book(DocumentType.ECF, records, company))

        values = [line.split("|")[2] for line in encoded.lines if line.startswith("|X290|")]
        assert values == ["5,00", "1,00", "4,00", "2,00", "3,00"]

    def test_oversized_amount_does_not_abort_book(
        self, encoder: SPEDEncoder, company: CompanyConfig
    ):
        """An amount too large for two decimal places is written as zero."""
        records = [{"tipo": "receita", "valor": "1e30"}, {"tipo": "receita", "valor": "10"}]
        encoded = encoder.encode(book(DocumentType.ECF, records, company))

        assert encoded.lines[3:] == [
            "|X290|0,00|Receita|",
            "|X290|10,00|Receita|",
            "|9999|6|",
        ]


class TestEFDContribuicoes:
    """EFD-Contribuições (PIS/COFINS)."""

    def test_service_document(self, encoder: SPEDEncoder, company: CompanyConfig):
        record = {
            "tipo": "pis_cofins",
            "data": "2025-02-01",
            "numero": "NF000123",
            "baseCalculo": "1000",
            "valorPIS": "6.5",
            "valorCOFINS": "30",
        }
        encoded = encoder.encode(book(DocumentType.EFD_CONTRIBUICOES, [record], company))

        assert encoded.lines == [
            "|0000|018|1|20250310|20250310|Padaria Pão Quente LTDA|12345678000190|SP|110042490114|A||",
            "|0001|0|",
            "|0010|12345678000190|Padaria Pão Quente LTDA|São Paulo|SP||",
            "|0110|1|20250101|20251231|",
            "|A100|0|1|20250201|NF000123|||||1000,00|6,50|30,00|",
            "|9999|6|",
        ]

    def test_other_records_skipped(self, encoder: SPEDEncoder, company: CompanyConfig):
        records = [{"tipo": "receita"}, {"tipo": "pis_cofins"}]
        encoded = encoder.encode(book(DocumentType.EFD_CONTRIBUICOES, records, company))

        assert encoded.skipped_records == 1
        assert encoded.lines[4] == "|A100|0|1||1|||||0,00|0,00|0,00|"

    def test_missing_state_registration(self, encoder: SPEDEncoder, company: CompanyConfig):
        no_ie = company.model_copy(update={"state_registration": None})
        encoded = encoder.encode(book(DocumentType.EFD_CONTRIBUICOES, [], no_ie))

        assert encoded.lines[0].endswith("|SP||A||")


class TestClosingRegister:
    """The closing register counts every line, itself included."""

    @pytest.mark.parametrize("document_type", list(DocumentType))
    @pytest.mark.parametrize("count", [0, 1, 500])
    def test_count_matches_lines(self, encoder, company, document_type, count):
        records = [
            {"tipo": "receita", "data": "2025-01-15", "valor": "100"}
            for _ in range(count)
        ]
        encoded = encoder.encode(book(document_type, records, company))

        assert encoded.lines[0].startswith("|0000|")
        assert encoded.lines[-1] == f"|9999|{encoded.line_count}|"

    def test_ecd_500_records(self, encoder: SPEDEncoder, company: CompanyConfig):
        records = [{"data": "2025-01-15", "valor": "1"} for _ in range(500)]
        encoded = encoder.encode(book(DocumentType.ECD, records, company))

        # 4 opening registers, 3 per record, 1 closing
        assert encoded.lines[-1] == "|9999|1505|"


class TestEncode:
    """Module-level helpers and input handling."""

    def test_text_is_newline_terminated(self, company: CompanyConfig):
        encoded = encode(book(DocumentType.ECF, [], company), clock=fixed_clock)

        assert encoded.text.endswith("|9999|4|\n")
        assert encoded.text.count("\n") == 4
        assert str(encoded) == encoded.text

    def test_accepts_mapping(self, company: CompanyConfig):
        encoded = encode(
            {
                "document_type": "ECD",
                "records": None,
                "company": company.model_dump(),
            },
            clock=fixed_clock,
        )

        assert isinstance(encoded, EncodedFile)
        assert encoded.document_type == DocumentType.ECD
        assert encoded.generated_at == fixed_clock()

    def test_document_type_aliases(self, company: CompanyConfig):
        assert book("efd-contribuicoes", [], company).document_type == DocumentType.EFD_CONTRIBUICOES
        assert book("EFD", [], company).document_type == DocumentType.EFD_CONTRIBUICOES

    @pytest.mark.parametrize("document_type", ["EFD_ICMS", "", None, 7])
    def test_unsupported_document_type(self, company: CompanyConfig, document_type):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            encode({"document_type": document_type, "records": [], "company": company})

        assert "ECD" in exc_info.value.supported

    def test_deterministic_with_fixed_clock(self, company: CompanyConfig):
        records = [{"tipo": "receita", "valor": "1"}]
        first = encode(book(DocumentType.ECF, records, company), clock=fixed_clock)
        second = encode(book(DocumentType.ECF, records, company), clock=fixed_clock)

        assert first.text == second.text

    def test_file_name(self, company: CompanyConfig):
        name = sped_file_name(book(DocumentType.ECD, [], company))

        assert name == "ECD_12345678000190_20250101.txt"
