"""Structural validation of SPED files.

Validation is shallow on purpose: the Receita Federal validator (PVA)
performs the semantic checks. Here we only guarantee that a file is well
formed enough to be submitted:

1. The first non-blank line is the opening register |0000|.
2. The second-to-last line (the file ends with a newline) is |9999|.
3. The document type's marker register is present.
4. The line count declared in |9999| matches the file.
"""

from typing import Any, Union

import structlog

from .models import DocumentType, EncodedFile, ValidationResult
from .sped_encoder import CLOSING_REGISTER, OPENING_REGISTER

logger = structlog.get_logger()

MARKER_REGISTERS: dict[DocumentType, str] = {
    DocumentType.ECD: "|0001|0|",
    DocumentType.ECF: "|0010|",
    DocumentType.EFD_CONTRIBUICOES: "|0110|",
}


def validate(
    content: Union[str, EncodedFile],
    document_type: Union[DocumentType, str, Any],
) -> ValidationResult:
    """
    Check the structure of a SPED file.

    Args:
        content: File text, or an EncodedFile
        document_type: Expected document type

    Returns:
        ValidationResult with errors in check order

    Raises:
        UnsupportedFormatError: If the document type is not supported
    """
    doc_type = DocumentType.parse(document_type)
    text = content.text if isinstance(content, EncodedFile) else content
    errors: list[str] = []

    lines = text.split("\n")
    meaningful = [line for line in lines if line.strip()]

    opening = f"|{OPENING_REGISTER}|"
    closing = f"|{CLOSING_REGISTER}|"

    if not meaningful or not meaningful[0].startswith(opening):
        errors.append(f"File must start with register {OPENING_REGISTER}")

    closing_line = lines[-2] if len(lines) >= 2 else ""
    has_closing = closing_line.startswith(closing)
    if not has_closing:
        errors.append(f"File must end with register {CLOSING_REGISTER}")

    marker = MARKER_REGISTERS[doc_type]
    if marker not in text:
        errors.append(
            f"{doc_type.value} file must contain register {marker.strip('|').split('|')[0]}"
        )

    if has_closing:
        declared = closing_line.strip("|").split("|")[1:2]
        if not declared or not declared[0].isdigit():
            errors.append(f"Register {CLOSING_REGISTER} must declare the line count")
        elif int(declared[0]) != len(meaningful):
            errors.append(
                f"Register {CLOSING_REGISTER} declares {declared[0]} lines "
                f"but the file has {len(meaningful)}"
            )

    if errors:
        logger.warning("sped_validation_failed", document_type=doc_type.value, errors=errors)

    return ValidationResult(valid=not errors, errors=errors)
