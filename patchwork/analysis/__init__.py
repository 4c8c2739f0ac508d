"""
Analysis package for patchwork.

This package contains the semantic model used to answer symbol queries
for plugins: per-unit symbol extraction, the project-backed base model,
overlays that substitute one unit's text, and the explicit cache they
share.
"""

from .cache import AnalysisCache
from .model import ProjectModel, SemanticModel, SemanticQuery, normalize_identifier
from .overlay import ModelOverlay, overlay
from .symbols import ExportBinding, Symbol, UnitSymbols, extract_symbols

__all__ = [
    "AnalysisCache",
    "ExportBinding",
    "ModelOverlay",
    "ProjectModel",
    "SemanticModel",
    "SemanticQuery",
    "Symbol",
    "UnitSymbols",
    "extract_symbols",
    "normalize_identifier",
    "overlay",
]
