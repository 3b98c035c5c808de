"""DAS (Documento de Arrecadação do Simples Nacional) calculation.

The monthly DAS is the month's gross revenue times the effective rate, where
the effective rate comes from the Anexo bracket selected by RBT12:

    effective = max(0, (RBT12 * nominal - deduction) / RBT12)
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Optional, Union

import structlog

from .models import AuditEntry, TaxCalculationInput, TaxCalculationResult
from .simples_tables import (
    REVENUE_CEILING,
    find_bracket,
    get_tables_version,
)

logger = structlog.get_logger()

RATE_PLACES = Decimal("0.0001")
CENTS = Decimal("0.01")
HUNDRED = Decimal("100")


class SimplesNacionalCalculator:
    """
    Calculate the monthly DAS due under the Simples Nacional regime.

    Every step (bracket lookup, effective rate, amount due) is recorded in
    an audit log so the figure shown on the PGDAS-D summary can be traced
    back to the table that produced it.
    """

    def __init__(self, tables_version: Optional[str] = None):
        """
        Initialize calculator.

        Args:
            tables_version: Override the tables version label (default: current)
        """
        self.tables_version = tables_version or get_tables_version()
        self._audit_log: list[AuditEntry] = []

    def _log_step(
        self,
        step: str,
        input_value: str,
        output_value: str,
        source: str,
        notes: Optional[str] = None
    ) -> None:
        """Add an entry to the audit log."""
        entry = AuditEntry(
            step=step,
            input_value=input_value,
            output_value=output_value,
            source=source,
            notes=notes,
        )
        self._audit_log.append(entry)
        logger.debug(
            "das_calculation_step",
            step=step,
            input=input_value,
            output=output_value,
            source=source,
        )

    def calculate(
        self,
        data: Union[TaxCalculationInput, Mapping[str, Any]],
    ) -> TaxCalculationResult:
        """
        Calculate nominal rate, deduction, effective rate and DAS due.

        Args:
            data: Calculation input, or a JSON-style mapping with the same fields

        Returns:
            TaxCalculationResult with the audit trail

        Raises:
            UnknownCategoryError: If the category is not one of Anexo I..V
            InvalidInputError: If a revenue is negative or the period is malformed
        """
        if not isinstance(data, TaxCalculationInput):
            data = TaxCalculationInput.model_validate(data)

        self._audit_log = []
        warnings: list[str] = []
        rbt12 = data.trailing_twelve_month_revenue

        # Step 1: Bracket lookup
        index, bracket = find_bracket(data.category, rbt12)
        self._log_step(
            step="bracket_lookup",
            input_value=f"anexo={data.category.value}, rbt12={rbt12}",
            output_value=(
                f"faixa={index}, nominal={bracket.nominal_rate_percent}%, "
                f"deduction={bracket.deduction}"
            ),
            source=f"Simples Nacional Anexo {data.category.value} ({self.tables_version})",
        )

        if rbt12 > REVENUE_CEILING:
            warnings.append(
                f"RBT12 of {rbt12} exceeds the Simples Nacional ceiling of "
                f"{REVENUE_CEILING}; the last bracket was applied."
            )

        # Step 2: Effective rate
        if rbt12 == 0:
            effective = Decimal("0")
            warnings.append(
                "RBT12 is zero; effective rate and DAS due are reported as zero."
            )
            self._log_step(
                step="effective_rate",
                input_value="rbt12=0",
                output_value="0",
                source="Zero RBT12 guard",
            )
        else:
            gross = rbt12 * bracket.nominal_rate_percent / HUNDRED
            effective = max(Decimal("0"), (gross - bracket.deduction) / rbt12) * HUNDRED
            self._log_step(
                step="effective_rate",
                input_value=(
                    f"(({rbt12} * {bracket.nominal_rate_percent}%) - "
                    f"{bracket.deduction}) / {rbt12}"
                ),
                output_value=f"{effective.quantize(RATE_PLACES, rounding=ROUND_HALF_UP)}%",
                source="LC 123/2006 art. 18 §1-A",
            )

        # Step 3: Amount due
        amount_due = (data.month_revenue * effective / HUNDRED).quantize(
            CENTS, rounding=ROUND_HALF_UP
        )
        self._log_step(
            step="amount_due",
            input_value=f"{data.month_revenue} * effective rate",
            output_value=str(amount_due),
            source="PGDAS-D",
            notes=f"Competência {data.period_id}",
        )

        logger.info(
            "das_calculated",
            period=data.period_id,
            anexo=data.category.value,
            faixa=index,
            amount_due=str(amount_due),
        )

        return TaxCalculationResult(
            nominal_rate_percent=bracket.nominal_rate_percent,
            deduction_amount=bracket.deduction,
            effective_rate_percent=effective.quantize(RATE_PLACES, rounding=ROUND_HALF_UP),
            amount_due=amount_due,
            bracket_index=index,
            tables_version=self.tables_version,
            audit_log=self._audit_log,
            warnings=warnings,
        )


def calculate_tax(
    data: Union[TaxCalculationInput, Mapping[str, Any]],
) -> TaxCalculationResult:
    """Calculate the DAS for one competência with a fresh calculator."""
    return SimplesNacionalCalculator().calculate(data)
