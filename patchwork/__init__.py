"""
patchwork: run ordered source-rewrite plugins over TypeScript and
JavaScript units.

The core pieces are:
  - SourceUnit, Range and the plugin result types in ``domain``,
  - the replacement applier in ``edits`` and import merging in
    ``imports``,
  - the semantic model, overlays and analysis cache in ``analysis``,
  - the per-unit coordinator and the Session that hosts drive.
"""

from .analysis import AnalysisCache, ModelOverlay, ProjectModel, SemanticModel, SemanticQuery, overlay
from .config import Config, ErrorPolicy, PluginEntry, load_manifest
from .coordinator import transform_unit
from .domain import (
    ImportIntent,
    Plugin,
    Range,
    Replacement,
    ReplacementIntent,
    SourceUnit,
    TransformContext,
    TransformResult,
    UnitResult,
)
from .edits import apply_replacements
from .errors import (
    ConfigError,
    ImportConflictError,
    MalformedResultError,
    OverlappingReplacementsError,
    ParseError,
    PatchworkError,
    PluginError,
    RangeError,
    RegistryError,
    StaleRangeError,
)
from .registry import PluginRegistry
from .session import Session
from .shared import SharedContext

__all__ = [
    "AnalysisCache",
    "Config",
    "ConfigError",
    "ErrorPolicy",
    "ImportConflictError",
    "ImportIntent",
    "MalformedResultError",
    "ModelOverlay",
    "OverlappingReplacementsError",
    "ParseError",
    "PatchworkError",
    "Plugin",
    "PluginEntry",
    "PluginError",
    "PluginRegistry",
    "ProjectModel",
    "Range",
    "RangeError",
    "RegistryError",
    "Replacement",
    "ReplacementIntent",
    "SemanticModel",
    "SemanticQuery",
    "Session",
    "SharedContext",
    "SourceUnit",
    "StaleRangeError",
    "TransformContext",
    "TransformResult",
    "UnitResult",
    "apply_replacements",
    "load_manifest",
    "overlay",
    "transform_unit",
]

__version__ = "0.1.0"
