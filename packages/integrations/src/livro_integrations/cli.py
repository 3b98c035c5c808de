"""
Livro Fiscal command line.

Usage:
    livro das --period 2025-03 --anexo I --month-revenue 30000 --rbt12 200000
    livro das --input calculo.json --summary markdown
    livro defis --input defis.json
    livro sped --input livro.json
    livro sped --erp-data bling.json --company empresa.json --type ECD
    livro sped --erp-data bling.json --company empresa.json --book "Livro Caixa"
    livro validate ECD_12345678000190_20250101.txt --type ECD --encoding latin-1
    livro export --erp-data bling.json --book "Livro Caixa" --format csv

JSON in, JSON or files out. Generated files go to LIVRO_OUTPUT_DIR unless
--output-dir is given. Exit code is 1 on invalid input or an invalid file.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from livro_core.book_exporter import BookExporter
from livro_core.calculator import SimplesNacionalCalculator
from livro_core.exceptions import LivroError
from livro_core.models import (
    CompanyConfig,
    DEFISInput,
    DocumentType,
    ExportedFile,
    RegulatoryBook,
    TaxCalculationInput,
)
from livro_core.report_generator import SimplesReportGenerator
from livro_core.sped_encoder import SPEDEncoder, sped_file_name
from livro_core.sped_validator import validate
from livro_integrations.book_builder import book_rows, build_regulatory_book, sped_type_for_book
from livro_integrations.config import LivroConfig
from livro_integrations.interfaces.types import ERPData
from livro_integrations.logging_setup import configure_logging

logger = structlog.get_logger()


def _load_json(path: str) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _write_exported(exported: ExportedFile, output_dir: Path, encoding: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / exported.filename
    path.write_bytes(exported.as_bytes(encoding))
    logger.info("file_written", path=str(path), media_type=exported.media_type)
    return path


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_das(args: argparse.Namespace, config: LivroConfig) -> int:
    if args.input:
        data = TaxCalculationInput.model_validate(_load_json(args.input))
    else:
        missing = [
            flag for flag, value in (
                ("--period", args.period),
                ("--anexo", args.anexo),
                ("--month-revenue", args.month_revenue),
                ("--rbt12", args.rbt12),
            )
            if value is None
        ]
        if missing:
            print(f"error: missing {', '.join(missing)} (or use --input)", file=sys.stderr)
            return 1
        data = TaxCalculationInput(
            period_id=args.period,
            category=args.anexo,
            month_revenue=args.month_revenue,
            trailing_twelve_month_revenue=args.rbt12,
        )

    result = SimplesNacionalCalculator().calculate(data)
    _print_json(result.model_dump(mode="json"))

    if args.summary:
        summary = SimplesReportGenerator().pgdas_summary(data, result, format=args.summary)
        path = _write_exported(summary, Path(args.output_dir), config.export.encoding)
        print(f"Summary written to {path}", file=sys.stderr)
    return 0


def cmd_defis(args: argparse.Namespace, config: LivroConfig) -> int:
    defis = DEFISInput.model_validate(_load_json(args.input))
    summary = SimplesReportGenerator().defis_summary(defis, format=args.format)
    path = _write_exported(summary, Path(args.output_dir), config.export.encoding)
    print(path)
    return 0


def cmd_sped(args: argparse.Namespace, config: LivroConfig) -> int:
    if args.input:
        book = RegulatoryBook.model_validate(_load_json(args.input))
    elif args.erp_data and args.company and (args.type or args.book):
        book = build_regulatory_book(
            ERPData.model_validate(_load_json(args.erp_data)),
            args.type or sped_type_for_book(args.book),
            CompanyConfig.model_validate(_load_json(args.company)),
        )
    else:
        print("error: use --input, or --erp-data with --company and --type or --book", file=sys.stderr)
        return 1

    encoded = SPEDEncoder().encode(book)
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / sped_file_name(book)
    with open(path, "w", encoding=config.export.encoding, newline="") as f:
        f.write(encoded.text)

    logger.info("file_written", path=str(path), lines=encoded.line_count)
    print(path)
    return 0


def cmd_validate(args: argparse.Namespace, config: LivroConfig) -> int:
    with open(args.file, encoding=args.encoding or config.export.encoding, newline="") as f:
        content = f.read()
    result = validate(content, args.type)
    _print_json(result.model_dump(mode="json"))
    return 0 if result.valid else 1


def cmd_export(args: argparse.Namespace, config: LivroConfig) -> int:
    data = ERPData.model_validate(_load_json(args.erp_data))
    rows = book_rows(data, args.book)
    exported = BookExporter().export(rows, args.book, format=args.format or config.export.default_format)
    path = _write_exported(exported, Path(args.output_dir), config.export.encoding)
    print(path)
    return 0


COMMANDS = {
    "das": cmd_das,
    "defis": cmd_defis,
    "sped": cmd_sped,
    "validate": cmd_validate,
    "export": cmd_export,
}


# =============================================================================
# ENTRY POINT
# =============================================================================

def build_parser(config: LivroConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="livro",
        description="Simples Nacional DAS calculation and SPED file generation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        default=config.log_level,
        help="Logging level (default: LIVRO_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs as JSON lines",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    def with_output_dir(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
        p.add_argument(
            "--output-dir",
            default=config.output_dir,
            help="Directory for generated files (default: LIVRO_OUTPUT_DIR)",
        )
        return p

    das = with_output_dir(sub.add_parser("das", help="Calculate the monthly DAS"))
    das.add_argument("--input", help="JSON file with the calculation input")
    das.add_argument("--period", help="Competência (YYYY-MM)")
    das.add_argument("--anexo", help="Anexo I to V")
    das.add_argument("--month-revenue", help="Receita bruta do mês")
    das.add_argument("--rbt12", help="Receita bruta dos últimos 12 meses")
    das.add_argument(
        "--summary",
        choices=["text", "markdown"],
        help="Also write the PGDAS-D summary in this format",
    )

    defis = with_output_dir(sub.add_parser("defis", help="Write the DEFIS summary"))
    defis.add_argument("--input", required=True, help="JSON file with the DEFIS data")
    defis.add_argument("--format", choices=["text", "markdown"], default="text")

    sped = with_output_dir(sub.add_parser("sped", help="Generate a SPED file"))
    sped.add_argument("--input", help="JSON file with the regulatory book")
    sped.add_argument("--erp-data", help="JSON file with synchronized ERP data")
    sped.add_argument("--company", help="JSON file with the company identification")
    sped.add_argument("--type", choices=[t.value for t in DocumentType], help="SPED document type")
    sped.add_argument("--book", help='Derive the document type from a book name, e.g. "Livro Caixa"')

    val = sub.add_parser("validate", help="Check the structure of a SPED file")
    val.add_argument("file", help="SPED text file")
    val.add_argument("--type", required=True, help="Expected SPED document type")
    val.add_argument("--encoding", help="File encoding (default: LIVRO_EXPORT_ENCODING)")

    export = with_output_dir(sub.add_parser("export", help="Export a fiscal book"))
    export.add_argument("--erp-data", required=True, help="JSON file with synchronized ERP data")
    export.add_argument("--book", required=True, help='Book name, e.g. "Livro Caixa"')
    export.add_argument("--format", help="csv, excel, text or pdf (default: LIVRO_EXPORT_DEFAULT_FORMAT)")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Run the command line; returns the process exit code."""
    try:
        config = LivroConfig()
    except ValidationError as e:
        print(f"error: invalid configuration\n{e}", file=sys.stderr)
        return 1
    args = build_parser(config).parse_args(argv)

    try:
        configure_logging(args.log_level, json_output=args.json_logs)
        return COMMANDS[args.command](args, config)
    except LivroError as e:
        logger.error("command_failed", command=args.command, error=e.message, details=e.details)
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"error: invalid input\n{e}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as e:
        print(f"error: input is not valid {e.encoding}: {e.reason}", file=sys.stderr)
        return 1
    except (OSError, LookupError, json.JSONDecodeError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
