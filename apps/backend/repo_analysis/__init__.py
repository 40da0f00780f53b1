"""
Repository Architecture Analysis
================================

Extracts a language-agnostic component model from a repository's source
files, resolves dependencies between components, groups them by
architectural layer and renders the result as diagrams.

Usage:
    from repo_analysis import ArchitectureAnalyzer, render_diagram

    data = asyncio.run(ArchitectureAnalyzer().analyze_directory("path/to/repo"))
    result = render_diagram(data, "mermaid-system")
"""

from .analyzer import AnalysisRun, ArchitectureAnalyzer
from .config import AnalyzerConfig, load_config
from .errors import (
    ArchitectureAnalysisError,
    ConfigError,
    InvalidRepositoryURLError,
    RateLimitError,
    RenderError,
    RepositoryNotFoundError,
    SourceFetchError,
    SourceHTTPError,
    SourceNetworkError,
)
from .models import (
    ArchitectureData,
    ArchitectureMetadata,
    ComponentNode,
    Relationship,
    SourceEntry,
    SourceFile,
    SystemBoundary,
)
from .progress import AnalysisProgress, ProgressStage
from .renderers import DiagramResult, DiagramView, render_diagram

__version__ = "0.1.0"

__all__ = [
    "ArchitectureAnalyzer",
    "AnalysisRun",
    "AnalyzerConfig",
    "load_config",
    "ArchitectureData",
    "ArchitectureMetadata",
    "ComponentNode",
    "Relationship",
    "SystemBoundary",
    "SourceEntry",
    "SourceFile",
    "AnalysisProgress",
    "ProgressStage",
    "DiagramResult",
    "DiagramView",
    "render_diagram",
    "ArchitectureAnalysisError",
    "ConfigError",
    "InvalidRepositoryURLError",
    "RateLimitError",
    "RenderError",
    "RepositoryNotFoundError",
    "SourceFetchError",
    "SourceHTTPError",
    "SourceNetworkError",
]
