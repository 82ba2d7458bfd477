"""Text builders for reports and exports."""

from __future__ import annotations

from typing import List, Sequence, Tuple

import pandas as pd

from . import code_templates
from .data_quality import drop_duplicates
from .dataclass import FeatureSuggestion, Profile, Row


def _number(value: float) -> str:
    # 33.0 -> "33", 33.33 -> "33.33"
    return f"{value:g}" if float(value).is_integer() else f"{value}"


def quality_report_markdown(name: str, profile: Profile) -> str:
    """データ品質レポート (Markdown)"""
    lines: List[str] = [
        f"# Data Quality Report - {name}",
        f"Rows: {profile.row_count}, Columns: {len(profile.columns)}",
        f"Overall Health Score: {_number(profile.overall)} ({profile.badge.label})",
        "",
        "## Completeness",
    ]
    lines.extend(f"- {column}: {_number(pct)}% missing" for column, pct in profile.missing.items())
    lines += [
        "",
        "## Duplicates",
        f"- {profile.duplicates.count} rows ({_number(profile.duplicates.percent)}%)",
        "",
        "## Outliers",
    ]
    lines.extend(f"- {column}: {count}" for column, count in profile.outliers.by_column.items())
    return "\n".join(lines)


def health_summary(name: str, profile: Profile) -> Tuple[str, str]:
    """共有用の件名と本文"""
    subject = "Dataset Health Report"
    body = "\n".join(
        [
            f"Dataset: {name}",
            f"Rows: {profile.row_count}, Columns: {len(profile.columns)}",
            f"Health Score: {_number(profile.overall)} ({profile.badge.label})",
        ]
    )
    return subject, body


def deduplicated_csv(rows: Sequence[Row]) -> str:
    """重複行を除いたCSVテキスト"""
    cleaned = drop_duplicates(rows)
    columns = list(rows[0].keys()) if rows else []
    return pd.DataFrame(cleaned, columns=columns).to_csv(index=False)


def feature_script(suggestions: Sequence[FeatureSuggestion], language: str) -> str:
    """選択された提案のコードを1つのスクリプトに連結"""
    blocks = [code_templates.script_header(language)]
    for suggestion in suggestions:
        blocks.append(
            "\n".join(
                [
                    code_templates.comment(language, suggestion.title),
                    suggestion.code.for_language(language),
                ]
            )
        )
    return "\n\n".join(blocks) + "\n"


def impact_stars(impact: int) -> str:
    filled = max(0, min(5, impact))
    return "★" * filled + "☆" * (5 - filled)


def feature_checklist_markdown(suggestions: Sequence[FeatureSuggestion]) -> str:
    """提案のチェックリスト (Markdown)"""
    lines = ["# Feature Engineering Checklist", ""]
    for suggestion in suggestions:
        lines += [
            f"- [ ] **{suggestion.title}**",
            f"  - Priority: {suggestion.priority}",
            f"  - Impact: {impact_stars(suggestion.impact)}",
            f"  - Why: {suggestion.explanation}",
            f"  - Columns: {', '.join(suggestion.columns)}",
        ]
    return "\n".join(lines) + "\n"
