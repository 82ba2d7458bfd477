"""Dataset health profiling and feature engineering suggestions."""

from .data_quality import DataQualityAnalyzer
from .dataclass import (
    AnalysisResult,
    CategoricalInfo,
    CodeTemplates,
    CorrelationMatrix,
    DuplicateResult,
    FeatureSuggestion,
    HealthBadge,
    LoadedDataset,
    NumericStats,
    OutlierResult,
    Profile,
    SuggestionBatch,
    SuggestionSummary,
)
from .eda_analyzer import EDAAnalyzer
from .ingestion import DatasetLoader, DatasetLoadError
from .preview import preview_suggestion
from .profiler import DatasetProfiler
from .session import AnalysisSession
from .suggestions import FeatureSuggestionEngine, priority_from_impact

__all__ = [
    "AnalysisResult",
    "AnalysisSession",
    "CategoricalInfo",
    "CodeTemplates",
    "CorrelationMatrix",
    "DataQualityAnalyzer",
    "DatasetLoadError",
    "DatasetLoader",
    "DatasetProfiler",
    "DuplicateResult",
    "EDAAnalyzer",
    "FeatureSuggestion",
    "FeatureSuggestionEngine",
    "HealthBadge",
    "LoadedDataset",
    "NumericStats",
    "OutlierResult",
    "Profile",
    "SuggestionBatch",
    "SuggestionSummary",
    "preview_suggestion",
    "priority_from_impact",
]
