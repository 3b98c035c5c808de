"""Livro Core - Simples Nacional calculations and SPED file generation."""

__version__ = "0.1.0"

from .calculator import SimplesNacionalCalculator, calculate_tax
from .models import (
    Anexo,
    DocumentType,
    ExportFormat,
    RegulatoryBook,
    TaxCalculationInput,
    TaxCalculationResult,
)
from .sped_encoder import SPEDEncoder, encode
from .sped_validator import validate

__all__ = [
    "SimplesNacionalCalculator",
    "calculate_tax",
    "Anexo",
    "DocumentType",
    "ExportFormat",
    "RegulatoryBook",
    "TaxCalculationInput",
    "TaxCalculationResult",
    "SPEDEncoder",
    "encode",
    "validate",
]
