"""Livro Integrations - ERP synchronization, fiscal books and the command line."""

from livro_integrations.config import (
    ExportConfig,
    LivroConfig,
    SyncConfig,
)

__version__ = "0.1.0"

__all__ = [
    "ExportConfig",
    "LivroConfig",
    "SyncConfig",
]
