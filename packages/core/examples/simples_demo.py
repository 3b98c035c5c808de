#!/usr/bin/env python3
"""
Simples Nacional and SPED Demonstration

This script walks through a month of bookkeeping for a small company:
1. Calculate the DAS due for the competência
2. Write the PGDAS-D summary
3. Generate an ECD file from ledger records and validate its structure
4. Export the Livro Caixa rows

Run: python examples/simples_demo.py
"""

from decimal import Decimal

from livro_core import (
    DocumentType,
    RegulatoryBook,
    SimplesNacionalCalculator,
    TaxCalculationInput,
    encode,
    validate,
)
from livro_core.book_exporter import BookExporter
from livro_core.models import CompanyConfig
from livro_core.report_generator import SimplesReportGenerator
from livro_core.sped_encoder import sped_file_name


def create_sample_book() -> RegulatoryBook:
    """Create a sample ECD book with realistic ledger records."""
    company = CompanyConfig(
        tax_id="12345678000190",
        legal_name="Padaria Pão Quente LTDA",
        state_registration="110042490114",
        municipality="São Paulo",
        state_code="SP",
        period_start="2025-03-01",
        period_end="2025-03-31",
    )

    records = [
        {
            "conta": "1.1.01.01",
            "descricao": "Caixa",
            "saldo": "12500.00",
            "data": "2025-03-03",
            "valor": "8400.00",
            "tipo": "credito",
            "historico": "Vendas no balcão",
        },
        {
            "conta": "2.1.01.03",
            "descricao": "Fornecedores",
            "saldo": "3100.00",
            "data": "2025-03-10",
            "valor": "3100.00",
            "tipo": "debito",
            "historico": "Pagamento de farinha",
        },
        # Opening balance only; no entry is emitted
        {"conta": "1.2.03.01", "descricao": "Equipamentos", "saldo": "45000.00"},
    ]

    return RegulatoryBook(document_type=DocumentType.ECD, records=records, company=company)


def main():
    """Run the Simples Nacional demonstration."""
    print("=" * 70)
    print("LIVRO CORE - Simples Nacional Demo")
    print("=" * 70)
    print()

    # Step 1: DAS
    print("Step 1: Calculating the DAS for 2025-03...")
    data = TaxCalculationInput(
        period_id="2025-03",
        category="I",
        month_revenue=Decimal("30000"),
        trailing_twelve_month_revenue=Decimal("200000"),
    )
    result = SimplesNacionalCalculator().calculate(data)
    print(f"  - Faixa: {result.bracket_index}")
    print(f"  - Alíquota nominal: {result.nominal_rate_percent}%")
    print(f"  - Alíquota efetiva: {result.effective_rate_percent}%")
    print(f"  - DAS devido: R$ {result.amount_due}")
    for warning in result.warnings:
        print(f"  - Warning: {warning}")
    print()

    # Step 2: PGDAS-D summary
    print("Step 2: Writing the PGDAS-D summary...")
    summary = SimplesReportGenerator().pgdas_summary(data, result)
    with open(summary.filename, "w", encoding="utf-8") as f:
        f.write(summary.content)
    print(f"  - Saved: {summary.filename}")
    print()

    # Step 3: ECD
    print("Step 3: Generating the ECD file...")
    book = create_sample_book()
    encoded = encode(book)
    print(encoded.text)

    check = validate(encoded, book.document_type)
    print(f"  - Valid: {check.valid}")
    for error in check.errors:
        print(f"  - Error: {error}")

    filename = sped_file_name(book)
    with open(filename, "w", encoding="utf-8", newline="") as f:
        f.write(encoded.text)
    print(f"  - Saved: {filename}")
    print()

    # Step 4: Livro Caixa
    print("Step 4: Exporting the Livro Caixa...")
    rows = [
        {"data": "03/03/2025", "descricao": "Vendas no balcão", "entrada": "8400.00", "saida": ""},
        {"data": "10/03/2025", "descricao": "Pagamento de farinha", "entrada": "", "saida": "3100.00"},
    ]
    exporter = BookExporter()
    for fmt in ("csv", "pdf"):
        exported = exporter.export(rows, "Livro Caixa", format=fmt)
        with open(exported.filename, "wb") as f:
            f.write(exported.as_bytes())
        print(f"  - Saved: {exported.filename}")

    print()
    print("=" * 70)
    print("Demo complete!")
    print("=" * 70)


if __name__ == "__main__":
    main()
