"""Value formatting shared by the SPED encoder and the report generators.

SPED registers use a comma as decimal separator with two decimal digits and
dates as YYYYMMDD. Ledger records come from noisy ERP synchronization, so the
parsers here never raise: anything unusable maps to a neutral value.
"""

import re
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

CENTS = Decimal("0.01")

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_BR_DATE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})")
_FIELD_BREAKERS = re.compile(r"[|\r\n]+")


def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse a currency value leniently.

    Accepts Decimal, int, float and strings in either "1234.56" or
    Brazilian "1.234,56" notation.

    Returns:
        The Decimal value, or None when the value is missing, unparsable or
        too large to be written with two decimal places
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if isinstance(value, str):
        text = value.strip().replace("R$", "").strip()
        if not text:
            return None
        if "," in text:
            text = text.replace(".", "").replace(",", ".")
        try:
            value = Decimal(text)
        except InvalidOperation:
            return None
    if not isinstance(value, Decimal) or not value.is_finite():
        return None
    try:
        value.quantize(CENTS)
    except InvalidOperation:
        return None
    return value


def format_value(value: Any) -> str:
    """Format a currency value as SPED expects: "1234,56".

    Missing or unparsable values are formatted as "0,00".
    """
    amount = parse_amount(value) or Decimal("0")
    return str(amount.quantize(CENTS, rounding=ROUND_HALF_UP)).replace(".", ",")


def format_date(value: Any) -> str:
    """Format a date as YYYYMMDD.

    Accepts date/datetime objects, ISO strings ("2025-01-15",
    "2025-01-15T10:30:00Z") and Brazilian "15/01/2025". Other strings have
    their separators stripped. Missing values give an empty string.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.strftime("%Y%m%d")
    if isinstance(value, date):
        return value.strftime("%Y%m%d")

    text = str(value).strip()
    iso = _ISO_DATE.match(text)
    if iso:
        return "".join(iso.groups())
    br = _BR_DATE.match(text)
    if br:
        day, month, year = br.groups()
        return f"{year}{month}{day}"
    return text.replace("-", "").replace("/", "")


def format_text(value: Any, default: str = "") -> str:
    """Render a text field, falling back to a placeholder when empty.

    Pipes and line breaks would split the register, so they are replaced
    by a single space.
    """
    if value is None or value == "" or value is False:
        return default
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool) and value == 0:
        return default
    return _FIELD_BREAKERS.sub(" ", str(value)).strip() or default


def format_brl(value: Any) -> str:
    """Format a currency value for human-readable summaries: "30000.00"."""
    amount = parse_amount(value) or Decimal("0")
    return str(amount.quantize(CENTS, rounding=ROUND_HALF_UP))
