"""Simples Nacional rate tables (Anexos I to V) for DAS calculations.

Each Anexo has six brackets (faixas) of trailing twelve-month gross revenue
(RBT12). A bracket carries its inclusive upper bound, the nominal rate and
the amount to deduct (parcela a deduzir).

Source: Lei Complementar 123/2006, Anexos I a V, as amended by LC 155/2016
(simplified: the per-tax breakdown of each bracket is not modelled).
"""

from decimal import Decimal
from typing import NamedTuple, Union

from .models import Anexo


# =============================================================================
# VERSION TRACKING
# =============================================================================

SIMPLES_TABLES_VERSION = "LC155-2018"
EFFECTIVE_DATE = "2018-01-01"

# Annual revenue ceiling of the regime (last bracket bound)
REVENUE_CEILING = Decimal("4800000")


def get_tables_version() -> str:
    """Return current Simples Nacional tables version."""
    return SIMPLES_TABLES_VERSION


class Bracket(NamedTuple):
    """One faixa of an Anexo table."""
    upper_bound: Decimal
    nominal_rate_percent: Decimal
    deduction: Decimal


def _table(*rows: tuple[str, str, str]) -> tuple[Bracket, ...]:
    return tuple(Bracket(Decimal(u), Decimal(r), Decimal(d)) for u, r, d in rows)


# =============================================================================
# BRACKET TABLES
# =============================================================================
# Format: (RBT12 upper bound, nominal rate %, parcela a deduzir)

BRACKET_TABLES: dict[Anexo, tuple[Bracket, ...]] = {
    # Comércio
    Anexo.I: _table(
        ("180000", "4.0", "0"),
        ("360000", "7.3", "5940"),
        ("720000", "9.5", "13860"),
        ("1800000", "10.7", "22500"),
        ("3600000", "14.3", "87300"),
        ("4800000", "19.0", "378000"),
    ),
    # Indústria
    Anexo.II: _table(
        ("180000", "4.5", "0"),
        ("360000", "7.8", "5940"),
        ("720000", "10.0", "13860"),
        ("1800000", "11.2", "22500"),
        ("3600000", "14.7", "85500"),
        ("4800000", "30.0", "720000"),
    ),
    # Serviços (locação de bens móveis, serviços não sujeitos ao fator R)
    Anexo.III: _table(
        ("180000", "6.0", "0"),
        ("360000", "11.2", "9360"),
        ("720000", "13.5", "17640"),
        ("1800000", "16.0", "35640"),
        ("3600000", "21.0", "125640"),
        ("4800000", "33.0", "648000"),
    ),
    # Serviços com CPP recolhida à parte
    Anexo.IV: _table(
        ("180000", "4.5", "0"),
        ("360000", "9.0", "8100"),
        ("720000", "10.2", "12420"),
        ("1800000", "14.0", "39780"),
        ("3600000", "22.0", "183780"),
        ("4800000", "33.0", "828000"),
    ),
    # Serviços sujeitos ao fator R
    Anexo.V: _table(
        ("180000", "15.5", "0"),
        ("360000", "18.0", "4500"),
        ("720000", "19.5", "9900"),
        ("1800000", "20.5", "17100"),
        ("3600000", "23.0", "62100"),
        ("4800000", "30.5", "540000"),
    ),
}


def get_bracket_table(category: Union[Anexo, str]) -> tuple[Bracket, ...]:
    """Get the bracket table for an Anexo.

    Args:
        category: Anexo member or roman numeral ("I" to "V")

    Returns:
        Six brackets sorted ascending by upper bound

    Raises:
        UnknownCategoryError: If the category is not one of I..V
    """
    return BRACKET_TABLES[Anexo.parse(category)]


def find_bracket(
    category: Union[Anexo, str],
    trailing_twelve_month_revenue: Decimal,
) -> tuple[int, Bracket]:
    """Find the bracket for a given RBT12.

    The first bracket whose upper bound is >= the revenue wins, so a revenue
    exactly on a bound belongs to the lower bracket. Revenue above every
    bound falls in the last bracket.

    Args:
        category: Anexo member or roman numeral
        trailing_twelve_month_revenue: RBT12

    Returns:
        Tuple of (1-based bracket index, bracket)
    """
    table = get_bracket_table(category)
    for index, bracket in enumerate(table, start=1):
        if trailing_twelve_month_revenue <= bracket.upper_bound:
            return index, bracket
    return len(table), table[-1]
