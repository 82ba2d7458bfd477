"""Data models for profiling and feature suggestion functionality."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

Row = Dict[str, Any]


@dataclass
class DuplicateResult:
    """完全一致の重複行の検出結果"""

    count: int
    percent: float
    examples: List[Row]  # 最大5件


@dataclass
class OutlierResult:
    """IQR法による異常値の件数"""

    by_column: Dict[str, int]
    total: int


@dataclass
class NumericStats:
    """数値カラムの記述統計"""

    min: float
    max: float
    mean: float
    median: float
    std: float  # 母標準偏差
    values: List[float]


@dataclass
class CategoricalInfo:
    """カテゴリカルカラムのサマリー"""

    unique: int
    top: List[List[Any]]  # [value, count] の上位5件


@dataclass
class CorrelationMatrix:
    """数値カラム間のピアソン相関行列"""

    columns: List[str]
    matrix: List[List[float]]

    def get(self, a: str, b: str) -> float:
        return self.matrix[self.columns.index(a)][self.columns.index(b)]


@dataclass(frozen=True)
class HealthBadge:
    label: str
    color: str


@dataclass
class Profile:
    """1つのテーブルに対するデータ品質プロファイル"""

    row_count: int
    columns: List[str]
    missing: Dict[str, float]
    types: Dict[str, List[str]]
    duplicates: DuplicateResult
    outliers: OutlierResult
    numeric_stats: Dict[str, NumericStats]
    categorical: Dict[str, CategoricalInfo]
    correlation: CorrelationMatrix
    avg_missing: float
    type_issues: int
    type_issues_score: float
    high_cardinality_columns: int
    cardinality_score: float
    overall: float
    badge: HealthBadge


@dataclass
class CodeTemplates:
    """同一の変換を3言語で表現したコードテンプレート"""

    python: str
    r: str
    sql: str

    def for_language(self, language: str) -> str:
        if language not in ("python", "r", "sql"):
            raise ValueError(f"Unsupported language: {language}")
        return getattr(self, language)


@dataclass
class FeatureSuggestion:
    """特徴量エンジニアリングの提案"""

    id: str
    title: str
    description: str
    example: str
    columns: List[str]
    category: str  # numeric / categorical / datetime / domain
    priority: str  # high / medium / low
    impact: int  # 1-5
    complexity: str  # Easy / Moderate / Advanced
    explanation: str
    code: CodeTemplates


@dataclass
class SuggestionSummary:
    total: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


@dataclass
class SuggestionBatch:
    """1回の生成で得られた提案一覧"""

    suggestions: List[FeatureSuggestion] = field(default_factory=list)
    summary: SuggestionSummary = field(default_factory=SuggestionSummary)
    highlight: List[FeatureSuggestion] = field(default_factory=list)

    def get(self, suggestion_id: str) -> FeatureSuggestion:
        for suggestion in self.suggestions:
            if suggestion.id == suggestion_id:
                return suggestion
        raise ValueError(f"Suggestion '{suggestion_id}' not found")

    def filter(
        self, priority: Optional[str] = None, category: Optional[str] = None
    ) -> List[FeatureSuggestion]:
        return [
            s
            for s in self.suggestions
            if (priority is None or s.priority == priority)
            and (category is None or s.category == category)
        ]


@dataclass
class AnalysisResult:
    """プロファイルと提案のセット"""

    profile: Profile
    suggestions: SuggestionBatch


@dataclass
class LoadedDataset:
    """読み込み済みデータセット"""

    name: str
    path: str
    columns: List[str]
    rows: List[Row]


@dataclass
class ListDatasetsOutput:
    data_root: str
    datasets: List[str]


@dataclass
class PreviewDatasetOutput:
    path: str
    n_rows: int
    columns: List[str]
    rows: List[Row]


@dataclass
class SuggestionPreviewOutput:
    suggestion_id: str
    title: str
    columns: List[str]
    rows: List[Row]
