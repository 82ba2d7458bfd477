"""MCP server for feature engineering suggestion functionality."""

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from mcp.server.fastmcp import FastMCP
from featurelab import (
    AnalysisSession,
    DatasetLoader,
    FeatureSuggestion,
    SuggestionBatch,
    preview_suggestion,
)
from featurelab.dataclass import SuggestionPreviewOutput
from featurelab.ingestion import MAX_FILE_BYTES
from featurelab.preview import PREVIEW_ROWS
from featurelab.reports import feature_checklist_markdown, feature_script

DATA_ROOT = Path(
    os.environ.get(
        "FEATURELAB_DATA_ROOT", Path(__file__).resolve().parents[1] / "data"
    )
).resolve()
MAX_BYTES = int(os.environ.get("FEATURELAB_MAX_FILE_BYTES", MAX_FILE_BYTES))

mcp = FastMCP(
    "mcp-featurelab-features",
    stateless_http=True,
    host=os.environ.get("FEATURELAB_HOST", "0.0.0.0"),
    port=int(os.environ.get("FEATURELAB_PORT", 8081)),  # Different port from profile server
)

loader = DatasetLoader(DATA_ROOT, max_bytes=MAX_BYTES)
session = AnalysisSession()


def _suggest(path: str) -> SuggestionBatch:
    return session.analyze(loader.load(path).rows).suggestions


def _select(batch: SuggestionBatch, suggestion_ids: Optional[List[str]]) -> List[FeatureSuggestion]:
    if not suggestion_ids:
        return batch.suggestions
    return [batch.get(suggestion_id) for suggestion_id in suggestion_ids]


# MCP Tool Wrappers


@mcp.tool()
def suggest_features(
    path: str, priority: Optional[str] = None, category: Optional[str] = None
) -> SuggestionBatch:
    """
    Generate ranked feature engineering suggestions for a dataset.

    Args:
        path: Path to a CSV or spreadsheet file
        priority: Optional filter ("high", "medium", "low")
        category: Optional filter ("numeric", "categorical", "datetime", "domain")

    Returns:
        SuggestionBatch with suggestions, priority tally and highlights

    Example:
        >>> suggest_features("sales.csv", priority="high")
    """
    batch = _suggest(path)
    if priority is None and category is None:
        return batch
    return SuggestionBatch(
        suggestions=batch.filter(priority=priority, category=category),
        summary=batch.summary,
        highlight=batch.highlight,
    )


@mcp.tool()
def preview_suggestion_rows(path: str, suggestion_id: str) -> SuggestionPreviewOutput:
    """
    Apply one suggestion to the first rows of the dataset for display.

    Example:
        >>> preview_suggestion_rows("sales.csv", "numeric-1")
    """
    dataset = loader.load(path)
    batch = session.analyze(dataset.rows).suggestions
    suggestion = batch.get(suggestion_id)
    rows = preview_suggestion(suggestion, dataset.rows[:PREVIEW_ROWS])
    return SuggestionPreviewOutput(
        suggestion_id=suggestion.id,
        title=suggestion.title,
        columns=list(rows[0].keys()) if rows else [],
        rows=rows,
    )


@mcp.tool()
def export_feature_script(
    path: str, language: str = "python", suggestion_ids: Optional[List[str]] = None
) -> str:
    """
    Concatenate the code templates of the selected suggestions.

    Args:
        path: Path to a CSV or spreadsheet file
        language: Target language ("python", "r", "sql")
        suggestion_ids: Suggestions to include (None for all)
    """
    return feature_script(_select(_suggest(path), suggestion_ids), language)


@mcp.tool()
def export_feature_checklist(path: str, suggestion_ids: Optional[List[str]] = None) -> str:
    """Return a markdown checklist of the selected suggestions."""
    return feature_checklist_markdown(_select(_suggest(path), suggestion_ids))


if __name__ == "__main__":
    logging.basicConfig(
        stream=sys.stderr,
        level=os.environ.get("FEATURELAB_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mcp.run(transport="stdio")
    # Alternative: mcp.run(transport="streamable-http")
