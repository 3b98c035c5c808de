"""Exception hierarchy for Livro Fiscal.

Every error raised by the calculator, the SPED encoder and the ERP layer is a
LivroError. Structured context goes into ``details`` so that it can be logged
as-is:

    try:
        result = calculate_tax(payload)
    except UnknownCategoryError as e:
        print(f"Anexo inválido: {e.details['category']}")
    except LivroError as e:
        logger.error("operation_failed", error=e.message, details=e.details)
"""

from typing import Any, Optional


def _context(**values: Any) -> dict[str, Any]:
    """Drop keys whose value was not supplied."""
    return {key: value for key, value in values.items() if value not in (None, "")}


class LivroError(Exception):
    """Base class for application errors.

    Attributes:
        message: Human-readable description.
        details: Structured context (field names, values, provider, ...).
        recoverable: True when resubmitting or retrying can succeed.
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def _merge(self, **values: Any) -> None:
        self.details.update(_context(**values))

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.message!r}, "
            f"details={self.details!r}, recoverable={self.recoverable!r})"
        )


class InvalidInputError(LivroError):
    """Negative, non-numeric or malformed calculator input.

    Raised for a revenue below zero, an amount that is not a finite number
    or a competência that is not YYYY-MM. The caller can correct and resubmit,
    so these are recoverable by default.
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.field = field
        self.value = value
        self.constraint = constraint
        self._merge(field=field, value=value, constraint=constraint)


class UnknownCategoryError(LivroError):
    """The Anexo selector is not one of I, II, III, IV or V."""

    def __init__(
        self,
        message: str,
        *,
        category: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.category = category
        self.details["category"] = repr(category)


class UnsupportedFormatError(LivroError):
    """A SPED document type, export format or book name that is not handled.

    This is the one failure that aborts a whole encode: individual malformed
    records never raise, they are written with placeholders instead.
    """

    def __init__(
        self,
        message: str,
        *,
        format_name: Optional[Any] = None,
        supported: Optional[list[str]] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.format_name = format_name
        self.supported = list(supported or [])
        if format_name is not None:
            self.details["format"] = str(format_name)
        if supported:
            self._merge(supported=self.supported)


class IntegrationError(LivroError):
    """An ERP provider could not deliver records.

    Set ``recoverable=True`` for transient failures (timeouts, 5xx); the
    synchronizer only retries those.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        operation: Optional[str] = None,
        api_error: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.provider = provider
        self.operation = operation
        self.api_error = api_error
        self._merge(provider=provider, operation=operation, api_error=api_error)


class ConfigurationError(LivroError):
    """Bad settings: an unknown ERP provider, log level or similar."""

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.config_key = config_key
        self._merge(config_key=config_key, expected=expected, actual=actual)
