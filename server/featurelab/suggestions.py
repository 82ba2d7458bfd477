"""Feature engineering suggestion rules.

Rules are plain functions registered in ``RULES`` and evaluated in that
order. A table rule looks at the whole profile; a column rule group runs its
member rules column by column, so the suggestions for one column stay
together. Suggestion ids are numbered across the whole run in emission
order, which makes the order of ``RULES`` part of the output contract.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from itertools import groupby
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy import stats

from . import code_templates as templates
from .data_quality import quantile
from .dataclass import (
    CategoricalInfo,
    CodeTemplates,
    CorrelationMatrix,
    FeatureSuggestion,
    NumericStats,
    Profile,
    Row,
    SuggestionBatch,
    SuggestionSummary,
)
from .type_inference import column_names, is_missing, is_number, stringify

logger = logging.getLogger(__name__)

EASY = "Easy"
MODERATE = "Moderate"
ADVANCED = "Advanced"

HIGH = "high"
MEDIUM = "medium"
LOW = "low"

HIGHLIGHT_SIZE = 3

POLYNOMIAL_MIN_UNIQUE = 100
DISCRETIZE_MIN_UNIQUE = 50
SKEW_MIN_VALUES = 5
SKEW_THRESHOLD = 1.0
SCALE_MIN_RANGE = 1000
RARE_SHARE = 0.01
TEXT_LENGTH_RANGE = (5, 80)
PREFIX_GROUP_MIN = 3

DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

# (左カラム, 右カラム, 派生カラム, 演算)
KNOWN_PAIRS: Tuple[Tuple[str, str, str, str], ...] = (
    ("price", "quantity", "total_value", "product"),
    ("distance", "time", "speed", "ratio"),
    ("weight", "height", "bmi", "ratio_squared"),
    # price と total_price だけのテーブルでは発火しない (quantity が必要)
    ("total_price", "quantity", "price_per_unit", "ratio"),
)
_OPERATION_SYMBOL = {"product": "*", "ratio": "/", "ratio_squared": "/ (squared)"}

# (カテゴリ数の上限, 手法, 理由, 難易度)
ENCODING_TIERS: Tuple[Tuple[float, str, str, str], ...] = (
    (10, "One-Hot Encoding", "Low cardinality nominal feature", EASY),
    (20, "Ordinal Encoding", "Manageable cardinality with potential order cues", MODERATE),
    (50, "Target Encoding", "Balanced trade-off between signal and dimensionality", MODERATE),
    (float("inf"), "Frequency Encoding", "Very high cardinality", MODERATE),
)


def priority_from_impact(impact: int, complexity: str) -> str:
    """impact と complexity から優先度を決定"""
    if impact >= 4 and complexity in (EASY, MODERATE):
        return HIGH
    if impact <= 2:
        return LOW
    return MEDIUM


@dataclass
class SuggestionDraft:
    """id と priority が決まる前の提案"""

    category: str
    title: str
    description: str
    example: str
    columns: List[str]
    impact: int
    complexity: str
    explanation: str
    code: CodeTemplates


@dataclass
class RuleContext:
    """ルールが参照するプロファイル情報"""

    rows: Sequence[Row]
    numeric_stats: Dict[str, NumericStats]
    categorical: Dict[str, CategoricalInfo]
    correlation: CorrelationMatrix
    columns: List[str] = field(init=False)
    numeric_columns: List[str] = field(init=False)
    categorical_columns: List[str] = field(init=False)
    date_columns: List[str] = field(init=False)

    def __post_init__(self) -> None:
        self.columns = column_names(self.rows)
        self.numeric_columns = list(self.numeric_stats)
        self.categorical_columns = list(self.categorical)
        self.date_columns = [
            column
            for column in self.columns
            if any(DATE_PATTERN.search(stringify(row.get(column))) for row in self.rows)
        ]

    def lower_columns(self) -> List[str]:
        return [column.lower() for column in self.columns]

    def columns_matching(self, pattern: str) -> List[str]:
        regex = re.compile(pattern, re.IGNORECASE)
        return [column for column in self.columns if regex.search(column)]

    def first_column_with(self, keyword: str, default: str) -> str:
        for column in self.columns:
            if keyword in column.lower():
                return column
        return default

    def contains_keyword(self, keywords: Iterable[str]) -> bool:
        lowered = self.lower_columns()
        return any(keyword in column for keyword in keywords for column in lowered)


TableRule = Callable[[RuleContext], Iterable[SuggestionDraft]]
ColumnRule = Callable[[RuleContext, str], Optional[SuggestionDraft]]


@dataclass
class ColumnRules:
    """対象カラムごとに複数ルールを順に評価するグループ"""

    columns_of: Callable[[RuleContext], List[str]]
    rules: Sequence[ColumnRule]

    def __call__(self, context: RuleContext) -> Iterable[SuggestionDraft]:
        for column in self.columns_of(context):
            for rule in self.rules:
                draft = rule(context, column)
                if draft is not None:
                    yield draft


# ---------------------------------------------------------------------------
# numeric rules
# ---------------------------------------------------------------------------


def _unique_count(context: RuleContext, column: str) -> int:
    return len(set(context.numeric_stats[column].values))


def polynomial_rule(context: RuleContext, column: str) -> Optional[SuggestionDraft]:
    unique_count = _unique_count(context, column)
    if unique_count <= POLYNOMIAL_MIN_UNIQUE:
        return None
    return SuggestionDraft(
        category="numeric",
        title=f"Polynomial features for {column}",
        description=f"Create squared and cubed versions of {column} to capture non-linear relationships in models.",
        example=f"{column}² and {column}³ for richer signal",
        columns=[column],
        impact=4,
        complexity=EASY,
        explanation=(
            f"{column} has {unique_count} unique values. Higher-order terms often improve "
            "tree-based and linear models when curves exist."
        ),
        code=templates.polynomial(column),
    )


def discretize_rule(context: RuleContext, column: str) -> Optional[SuggestionDraft]:
    if _unique_count(context, column) <= DISCRETIZE_MIN_UNIQUE:
        return None
    info = context.numeric_stats[column]
    ordered = sorted(info.values)
    q1 = quantile(ordered, 0.25)
    q3 = quantile(ordered, 0.75)
    return SuggestionDraft(
        category="numeric",
        title=f"Discretize {column}",
        description=f"Convert {column} into categorical bins to capture non-linear thresholds.",
        example=f"{column} grouped into Low (< {q1:.2f}), Medium (< {q3:.2f}) and High bands",
        columns=[column],
        impact=3,
        complexity=EASY,
        explanation=(
            f"{column} spans {info.min:.1f} to {info.max:.1f} with many unique values. "
            "Binning simplifies modeling."
        ),
        code=templates.quantile_bands(column, q1, q3),
    )


def skewness_rule(context: RuleContext, column: str) -> Optional[SuggestionDraft]:
    values = context.numeric_stats[column].values
    if len(values) < SKEW_MIN_VALUES or not np.std(values):
        return None
    # bias=True: mean((x - mu)^3) / sigma^3
    skewness = float(stats.skew(values, bias=True))
    if abs(skewness) <= SKEW_THRESHOLD:
        return None
    return SuggestionDraft(
        category="numeric",
        title=f"Normalize skewed {column}",
        description=f"Apply log transform to {column}. Current skewness {skewness:.2f}.",
        example=f"Log-transform {column} to stabilize variance",
        columns=[column],
        impact=4,
        complexity=EASY,
        explanation=f"{column} displays high skew ({skewness:.2f}). Log transforms reduce heavy tails.",
        code=templates.log1p(column),
    )


def scaling_rule(context: RuleContext, column: str) -> Optional[SuggestionDraft]:
    info = context.numeric_stats[column]
    if info.max - info.min <= SCALE_MIN_RANGE:
        return None
    return SuggestionDraft(
        category="numeric",
        title=f"Scale {column}",
        description=f"Standardize {column} to zero mean and unit variance.",
        example=f"{column}_z = ({column} - μ) / σ",
        columns=[column],
        impact=3,
        complexity=EASY,
        explanation=f"{column} range is large. Scaling keeps models stable across magnitudes.",
        code=templates.zscore(column),
    )


def known_pairs_rule(context: RuleContext) -> Iterable[SuggestionDraft]:
    for left, right, feature, operation in KNOWN_PAIRS:
        if left not in context.columns or right not in context.columns:
            continue
        yield SuggestionDraft(
            category="numeric",
            title=f"Combine {left} & {right}",
            description=f"Derive {feature} from {left} and {right} to capture domain insight.",
            example=f"Create {feature} = {left} {_OPERATION_SYMBOL[operation]} {right}",
            columns=[left, right],
            impact=4,
            complexity=EASY,
            explanation=f"Columns {left} and {right} suggest a business ratio.",
            code=templates.pair_feature(left, right, feature, operation),
        )


def prefix_aggregation_rule(context: RuleContext) -> Iterable[SuggestionDraft]:
    groups: Dict[str, List[str]] = {}
    for column in context.numeric_columns:
        groups.setdefault(column.split("_")[0], []).append(column)

    for prefix, columns in groups.items():
        if len(columns) < PREFIX_GROUP_MIN:
            continue
        yield SuggestionDraft(
            category="numeric",
            title=f"Aggregate {prefix} metrics",
            description=f"Combine {len(columns)} related {prefix} metrics into row-wise mean and sum features.",
            example=f"Create {prefix}_mean = mean({', '.join(columns)})",
            columns=columns,
            impact=3,
            complexity=EASY,
            explanation=(
                f"Grouping {len(columns)} {prefix} columns reduces noise and highlights composite signals."
            ),
            code=templates.row_aggregate(prefix, columns),
        )


def price_quantity_ratio_rule(context: RuleContext) -> Iterable[SuggestionDraft]:
    numeric = context.numeric_columns
    for price in (c for c in numeric if "price" in c):
        for quantity in (c for c in numeric if "quantity" in c and c != price):
            feature = f"{price}_per_{quantity}"
            yield SuggestionDraft(
                category="numeric",
                title=f"Ratio {price}/{quantity}",
                description="Ratio reveals efficiency (price per quantity).",
                example=feature,
                columns=[price, quantity],
                impact=4,
                complexity=EASY,
                explanation="Price and quantity pairs are classic for margin analysis.",
                code=templates.pair_feature(price, quantity, feature, "ratio"),
            )


# ---------------------------------------------------------------------------
# categorical rules
# ---------------------------------------------------------------------------


def _category_values(context: RuleContext, column: str) -> List[str]:
    """数値以外の値を出現順で重複なく返す"""
    values: Dict[str, None] = {}
    for row in context.rows:
        value = row.get(column)
        if not is_missing(value) and not is_number(value):
            values.setdefault(stringify(value), None)
    return list(values)


def encoding_rule(context: RuleContext, column: str) -> Optional[SuggestionDraft]:
    unique = context.categorical[column].unique
    for limit, encoding, reason, complexity in ENCODING_TIERS:
        if unique <= limit:
            break

    if encoding == "One-Hot Encoding":
        code = templates.one_hot(column, _category_values(context, column))
    elif encoding == "Ordinal Encoding":
        code = templates.ordinal(column, _category_values(context, column))
    elif encoding == "Target Encoding":
        code = templates.target_encoding(column)
    else:
        code = templates.frequency_encoding(column)

    return SuggestionDraft(
        category="categorical",
        title=f"Encode {column}",
        description=f"{encoding} recommended for {column} ({unique} unique values).",
        example=f"{column} → {encoding}",
        columns=[column],
        impact=5,
        complexity=complexity,
        explanation=reason,
        code=code,
    )


def rare_category_rule(context: RuleContext, column: str) -> Optional[SuggestionDraft]:
    counts: Dict[str, int] = {}
    for row in context.rows:
        value = row.get(column)
        if not is_missing(value):
            key = stringify(value)
            counts[key] = counts.get(key, 0) + 1

    total = len(context.rows)
    rare = [value for value, count in counts.items() if count / total < RARE_SHARE]
    if not rare:
        return None
    return SuggestionDraft(
        category="categorical",
        title=f"Group rare {column} categories",
        description=f"Combine {len(rare)} infrequent values into 'Other'.",
        example=f"Collapse rare {column} categories",
        columns=[column],
        impact=3,
        complexity=EASY,
        explanation="Rare categories increase dimensionality without signal.",
        code=templates.rare_grouping(column, rare),
    )


def text_length_rule(context: RuleContext, column: str) -> Optional[SuggestionDraft]:
    lengths = [len(stringify(row.get(column))) for row in context.rows]
    average = sum(lengths) / len(lengths)
    low, high = TEXT_LENGTH_RANGE
    if not low < average < high:
        return None
    return SuggestionDraft(
        category="categorical",
        title=f"Length feature for {column}",
        description=f"Capture text length of {column}.",
        example=f"{column}_length",
        columns=[column],
        impact=2,
        complexity=EASY,
        explanation=f"Length encodes information density for {column}.",
        code=templates.text_length(column),
    )


def interaction_rule(context: RuleContext) -> Iterable[SuggestionDraft]:
    if len(context.categorical_columns) < 2:
        return
    first, second = context.categorical_columns[:2]
    yield SuggestionDraft(
        category="categorical",
        title=f"Combine {first} & {second}",
        description="Interaction captures joint distribution between categories.",
        example=f"{first}_{second}",
        columns=[first, second],
        impact=3,
        complexity=MODERATE,
        explanation="Combining top categorical features often boosts performance.",
        code=templates.interaction(first, second),
    )


# ---------------------------------------------------------------------------
# datetime rules
# ---------------------------------------------------------------------------


def date_extraction_rule(context: RuleContext, column: str) -> Optional[SuggestionDraft]:
    return SuggestionDraft(
        category="datetime",
        title=f"Extract components from {column}",
        description="Derive year, month, day and weekday features.",
        example=f"{column} → {column}_year, {column}_month, {column}_day, {column}_dow",
        columns=[column],
        impact=5,
        complexity=EASY,
        explanation="Datetime expands into seasonal and weekly signals.",
        code=templates.date_parts(column),
    )


def cyclical_rule(context: RuleContext, column: str) -> Optional[SuggestionDraft]:
    return SuggestionDraft(
        category="datetime",
        title=f"Cyclical encoding for {column}",
        description="Map month to sine-cosine to preserve cyclic structure.",
        example=f"{column}_month_sin/cos",
        columns=[column],
        impact=4,
        complexity=MODERATE,
        explanation="Cyclical encoding maintains wrap-around relationships.",
        code=templates.cyclical_month(column),
    )


def date_interval_rule(context: RuleContext) -> Iterable[SuggestionDraft]:
    if len(context.date_columns) < 2:
        return
    start, end = context.date_columns[:2]
    yield SuggestionDraft(
        category="datetime",
        title=f"Days between {start} & {end}",
        description="Time-to-event reveals churn and recency.",
        example=f"{end}_{start}_days",
        columns=[start, end],
        impact=4,
        complexity=EASY,
        explanation=f"Interval between {start} and {end} indicates engagement intensity.",
        code=templates.day_interval(start, end),
    )


# ---------------------------------------------------------------------------
# domain rules
# ---------------------------------------------------------------------------

ECOMMERCE_KEYWORDS = ("price", "order", "product", "customer", "quantity")
REAL_ESTATE_KEYWORDS = ("sqft", "bedroom", "bathroom", "lot", "property")
FINANCIAL_KEYWORDS = ("amount", "balance", "account", "transaction")
HEALTHCARE_KEYWORDS = ("patient", "diagnosis", "treatment", "age", "symptom")


def ecommerce_rule(context: RuleContext) -> Iterable[SuggestionDraft]:
    if not context.contains_keyword(ECOMMERCE_KEYWORDS):
        return
    yield SuggestionDraft(
        category="domain",
        title="E-commerce basket insights",
        description="Create discount %, average basket size, and customer lifetime value features.",
        example="discount_pct = (price - total_price) / price",
        columns=context.columns_matching(r"price|quantity|order"),
        impact=4,
        complexity=MODERATE,
        explanation="E-commerce signals like discounts and CLV are predictive for retention.",
        code=templates.discount_and_basket(
            price=context.first_column_with("price", "price"),
            total_price=context.first_column_with("total", "total_price"),
            quantity=context.first_column_with("quantity", "quantity"),
        ),
    )


def real_estate_rule(context: RuleContext) -> Iterable[SuggestionDraft]:
    if not context.contains_keyword(REAL_ESTATE_KEYWORDS):
        return
    yield SuggestionDraft(
        category="domain",
        title="Real estate structural ratios",
        description="Price per square foot, bedroom ratio, property age.",
        example="price_per_sqft = price / sqft",
        columns=context.columns_matching(r"price|sqft|bed|bath|year"),
        impact=5,
        complexity=EASY,
        explanation="Real estate valuation heavily relies on area and room ratios.",
        code=templates.pair_feature(
            context.first_column_with("price", "price"),
            context.first_column_with("sqft", "sqft"),
            "price_per_sqft",
            "ratio",
        ),
    )


def financial_rule(context: RuleContext) -> Iterable[SuggestionDraft]:
    if not context.contains_keyword(FINANCIAL_KEYWORDS):
        return
    yield SuggestionDraft(
        category="domain",
        title="Financial velocity features",
        description="Compute transaction counts and rolling averages to capture spend velocity.",
        example="txn_per_customer",
        columns=context.columns_matching(r"amount|transaction|balance"),
        impact=4,
        complexity=ADVANCED,
        explanation="Velocity metrics uncover anomalous or high-value clients.",
        code=templates.group_count(
            group=context.first_column_with("customer", "customer_id"),
            counted=context.first_column_with("transaction", "transaction_id"),
            feature="txn_per_customer",
        ),
    )


def healthcare_rule(context: RuleContext) -> Iterable[SuggestionDraft]:
    if not context.contains_keyword(HEALTHCARE_KEYWORDS):
        return
    yield SuggestionDraft(
        category="domain",
        title="Healthcare BMI & age groups",
        description="Derive BMI, age bins, symptom counts.",
        example="BMI = weight / (height_m^2)",
        columns=context.columns_matching(r"weight|height|age|symptom"),
        impact=5,
        complexity=EASY,
        explanation="Clinical derived metrics are highly predictive.",
        code=templates.bmi(
            weight_kg=context.first_column_with("weight", "weight_kg"),
            height_cm=context.first_column_with("height", "height_cm"),
        ),
    )


def rolling_window_rule(context: RuleContext) -> Iterable[SuggestionDraft]:
    if not context.date_columns or not context.numeric_columns:
        return
    date_column = context.date_columns[0]
    value_column = context.numeric_columns[0]
    yield SuggestionDraft(
        category="domain",
        title="Time-based rolling metrics",
        description="Create rolling 7-day/30-day aggregates for key metrics.",
        example=f"rolling_7 = 7-row mean of {value_column} ordered by {date_column}",
        columns=[*context.date_columns, *context.numeric_columns[:2]],
        impact=4,
        complexity=ADVANCED,
        explanation="Rolling windows expose trend and seasonality.",
        code=templates.rolling_mean(date_column, value_column),
    )


Rule = Union[TableRule, ColumnRules]

RULES: Tuple[Rule, ...] = (
    ColumnRules(lambda c: c.numeric_columns, [polynomial_rule]),
    ColumnRules(lambda c: c.numeric_columns, [discretize_rule]),
    ColumnRules(lambda c: c.numeric_columns, [skewness_rule, scaling_rule]),
    known_pairs_rule,
    prefix_aggregation_rule,
    price_quantity_ratio_rule,
    ColumnRules(
        lambda c: c.categorical_columns,
        [encoding_rule, rare_category_rule, text_length_rule],
    ),
    interaction_rule,
    ColumnRules(lambda c: c.date_columns, [date_extraction_rule, cyclical_rule]),
    date_interval_rule,
    ecommerce_rule,
    real_estate_rule,
    financial_rule,
    healthcare_rule,
    rolling_window_rule,
)


class FeatureSuggestionEngine:
    """ルール一覧を順に評価して提案を生成するクラス"""

    def __init__(self, rules: Sequence[Rule] = RULES):
        self.rules = rules

    def generate(
        self,
        rows: Sequence[Row],
        numeric_stats: Dict[str, NumericStats],
        categorical: Dict[str, CategoricalInfo],
        correlation: CorrelationMatrix,
    ) -> SuggestionBatch:
        """
        特徴量エンジニアリングの提案を生成

        Args:
            rows: 元の行データ
            numeric_stats: 数値カラムの統計
            categorical: カテゴリカルカラムのサマリー
            correlation: 相関行列
        """
        if not rows:
            return SuggestionBatch()

        context = RuleContext(
            rows=rows,
            numeric_stats=numeric_stats,
            categorical=categorical,
            correlation=correlation,
        )
        suggestions: List[FeatureSuggestion] = []
        for rule in self.rules:
            for draft in rule(context):
                suggestions.append(self._finalize(draft, len(suggestions) + 1))

        summary = SuggestionSummary(total=len(suggestions))
        for priority, group in groupby(sorted(s.priority for s in suggestions)):
            setattr(summary, priority, len(list(group)))
        highlight = [s for s in suggestions if s.priority == HIGH][:HIGHLIGHT_SIZE]

        logger.info(
            "Generated %d feature suggestions (%d high, %d medium, %d low)",
            summary.total,
            summary.high,
            summary.medium,
            summary.low,
        )
        return SuggestionBatch(suggestions=suggestions, summary=summary, highlight=highlight)

    def generate_for_profile(self, rows: Sequence[Row], profile: Profile) -> SuggestionBatch:
        return self.generate(
            rows,
            numeric_stats=profile.numeric_stats,
            categorical=profile.categorical,
            correlation=profile.correlation,
        )

    @staticmethod
    def _finalize(draft: SuggestionDraft, sequence: int) -> FeatureSuggestion:
        return FeatureSuggestion(
            id=f"{draft.category}-{sequence}",
            title=draft.title,
            description=draft.description,
            example=draft.example,
            columns=list(draft.columns),
            category=draft.category,
            priority=priority_from_impact(draft.impact, draft.complexity),
            impact=draft.impact,
            complexity=draft.complexity,
            explanation=draft.explanation,
            code=draft.code,
        )
