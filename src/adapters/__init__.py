"""Adapters for portal data sources.

This module provides the read-side ports the activity core depends on
and their database implementation:
- SourceAdapter: Protocol for one-kind-of-record readers
- CompanyDirectory: Protocol for company/retainer lookup
- FetchWindow: Time window a source is asked to cover
- TursoSourceAdapter / TursoCompanyDirectory: libSQL implementations
"""

from src.adapters.base import CompanyDirectory, FetchWindow, RawRecord, SourceAdapter
from src.adapters.turso_sources import (
    TursoCompanyDirectory,
    TursoSourceAdapter,
    build_turso_sources,
)

__all__ = [
    "CompanyDirectory",
    "FetchWindow",
    "RawRecord",
    "SourceAdapter",
    "TursoCompanyDirectory",
    "TursoSourceAdapter",
    "build_turso_sources",
]
