"""Data models for Simples Nacional calculations (PGDAS-D and DEFIS).

This module provides the inputs and results of the DAS calculation and the
annual DEFIS declaration, plus the audit entry used to trace each
calculation step.

Reference: Lei Complementar 123/2006, Anexos I a V.
"""

import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from livro_core.exceptions import InvalidInputError, UnknownCategoryError


PERIOD_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

# Far above any Simples Nacional ceiling; keeps amounts within Decimal precision
MAX_AMOUNT = Decimal("1000000000000000")


def _utc_now() -> datetime:
    """Return current UTC datetime with timezone info."""
    return datetime.now(timezone.utc)


def coerce_non_negative_amount(value: Any, field: str) -> Decimal:
    """Coerce a currency value to Decimal, rejecting negatives.

    Args:
        value: Decimal, int, float or numeric string
        field: Field name used in the error

    Returns:
        The value as a finite, non-negative Decimal no larger than MAX_AMOUNT

    Raises:
        InvalidInputError: If the value is not numeric, is negative or is
            larger than MAX_AMOUNT
    """
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(
            f"{field} must be a number",
            field=field,
            value=repr(value),
            constraint="numeric",
        )
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInputError(
            f"{field} must be a number",
            field=field,
            value=str(value),
            constraint="numeric",
        )
    if not amount.is_finite():
        raise InvalidInputError(
            f"{field} must be finite",
            field=field,
            value=str(value),
            constraint="finite",
        )
    if amount < 0:
        raise InvalidInputError(
            f"{field} cannot be negative",
            field=field,
            value=str(value),
            constraint=">= 0",
        )
    if amount > MAX_AMOUNT:
        raise InvalidInputError(
            f"{field} exceeds {MAX_AMOUNT}",
            field=field,
            value=str(value),
            constraint=f"<= {MAX_AMOUNT}",
        )
    return amount


# =============================================================================
# ENUMERATIONS
# =============================================================================

class Anexo(str, Enum):
    """Simples Nacional activity tables (Anexos I to V)."""
    I = "I"
    II = "II"
    III = "III"
    IV = "IV"
    V = "V"

    @classmethod
    def parse(cls, value: Any) -> "Anexo":
        """Resolve an Anexo from an enum member or a roman numeral string.

        Raises:
            UnknownCategoryError: If the value is not one of I..V
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key.startswith("ANEXO"):
                key = key[len("ANEXO"):].strip(" _-")
            try:
                return cls(key)
            except ValueError:
                pass
        raise UnknownCategoryError(
            f"Unknown Simples Nacional category: {value!r}",
            category=value,
        )


# =============================================================================
# PGDAS-D
# =============================================================================

class TaxCalculationInput(BaseModel):
    """Input of a monthly DAS calculation.

    Revenue fields accept Decimal, int, float or numeric strings so the
    model can be built straight from a JSON form payload.
    """

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "period_id": "2025-03",
                    "category": "I",
                    "month_revenue": "30000.00",
                    "trailing_twelve_month_revenue": "200000.00",
                }
            ]
        },
    }

    period_id: str = Field(description="Competência in YYYY-MM format")
    category: Anexo = Field(description="Simples Nacional Anexo (I to V)")
    month_revenue: Decimal = Field(description="Receita bruta do mês (R$)")
    trailing_twelve_month_revenue: Decimal = Field(
        description="RBT12 - receita bruta acumulada nos últimos 12 meses (R$)"
    )

    @field_validator("period_id", mode="before")
    @classmethod
    def validate_period(cls, v: Any) -> str:
        """Competência must look like YYYY-MM."""
        if not isinstance(v, str) or not PERIOD_PATTERN.match(v.strip()):
            raise InvalidInputError(
                f"Invalid period: {v!r}",
                field="period_id",
                value=str(v),
                constraint="YYYY-MM",
            )
        return v.strip()

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, v: Any) -> Anexo:
        """Resolve the category, raising UnknownCategoryError when invalid."""
        return Anexo.parse(v)

    @field_validator("month_revenue", mode="before")
    @classmethod
    def validate_month_revenue(cls, v: Any) -> Decimal:
        return coerce_non_negative_amount(v, "month_revenue")

    @field_validator("trailing_twelve_month_revenue", mode="before")
    @classmethod
    def validate_rbt12(cls, v: Any) -> Decimal:
        return coerce_non_negative_amount(v, "trailing_twelve_month_revenue")


class AuditEntry(BaseModel):
    """Audit log entry for calculation transparency."""
    timestamp: datetime = Field(default_factory=_utc_now)
    step: str
    input_value: str
    output_value: str
    source: str
    notes: Optional[str] = None


class TaxCalculationResult(BaseModel):
    """Result of a DAS calculation.

    The audit trail is excluded from serialization; the dumped result is a
    pure function of the input.
    """

    nominal_rate_percent: Decimal
    deduction_amount: Decimal
    effective_rate_percent: Decimal  # 4 decimal places
    amount_due: Decimal  # 2 decimal places

    bracket_index: int = Field(ge=1, description="1-based bracket (faixa) used")
    tables_version: str
    audit_log: list[AuditEntry] = Field(default_factory=list, exclude=True)
    warnings: list[str] = Field(default_factory=list)

    def amounts(self) -> tuple[Decimal, Decimal, Decimal, Decimal]:
        """Return (nominal, deduction, effective, amount_due)."""
        return (
            self.nominal_rate_percent,
            self.deduction_amount,
            self.effective_rate_percent,
            self.amount_due,
        )


# =============================================================================
# DEFIS
# =============================================================================

class DEFISInput(BaseModel):
    """Annual DEFIS (Declaração de Informações Socioeconômicas e Fiscais) data."""

    calendar_year: int = Field(ge=2007, le=2100, description="Ano-calendário")
    annual_gross_revenue: Decimal = Field(description="Receita bruta anual (R$)")
    accounting_profit: Decimal = Field(description="Lucro contábil (R$)")
    profit_distribution: Decimal = Field(description="Distribuição de lucros (R$)")
    employees_on_december_31: int = Field(
        default=0, ge=0, description="Empregados em 31/12"
    )

    @field_validator("annual_gross_revenue", "profit_distribution", mode="before")
    @classmethod
    def validate_non_negative(cls, v: Any, info: ValidationInfo) -> Decimal:
        return coerce_non_negative_amount(v, info.field_name)

    @field_validator("accounting_profit", mode="before")
    @classmethod
    def coerce_profit(cls, v: Any) -> Decimal:
        """Accounting profit may be negative (prejuízo)."""
        if isinstance(v, (str, int, float)) and not isinstance(v, bool):
            try:
                return Decimal(str(v).strip())
            except InvalidOperation:
                raise InvalidInputError(
                    "accounting_profit must be a number",
                    field="accounting_profit",
                    value=str(v),
                    constraint="numeric",
                )
        return v
