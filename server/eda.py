"""MCP server for dataset profiling functionality."""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List

from mcp.server.fastmcp import FastMCP
from featurelab import DatasetLoader, DatasetProfiler, Profile
from featurelab.dataclass import (
    CorrelationMatrix,
    ListDatasetsOutput,
    PreviewDatasetOutput,
)
from featurelab.ingestion import MAX_FILE_BYTES, rows_from_records
from featurelab.reports import deduplicated_csv, health_summary, quality_report_markdown
from featurelab.sample_data import generate_sample

DATA_ROOT = Path(
    os.environ.get(
        "FEATURELAB_DATA_ROOT", Path(__file__).resolve().parents[1] / "data"
    )
).resolve()
MAX_BYTES = int(os.environ.get("FEATURELAB_MAX_FILE_BYTES", MAX_FILE_BYTES))

mcp = FastMCP(
    "mcp-featurelab-profile",
    stateless_http=True,
    host=os.environ.get("FEATURELAB_HOST", "0.0.0.0"),
    port=int(os.environ.get("FEATURELAB_PORT", 8080)),
)

# Initialize loader and profiler instances
loader = DatasetLoader(DATA_ROOT, max_bytes=MAX_BYTES)
profiler = DatasetProfiler()


@mcp.tool()
def list_datasets() -> ListDatasetsOutput:
    """List CSV and spreadsheet files available under the data directory."""
    return loader.list_datasets()


@mcp.tool()
def preview_dataset(path: str, n_rows: int = 5) -> PreviewDatasetOutput:
    """Return the first ``n_rows`` rows from the dataset file."""
    return loader.preview(path, n_rows)


@mcp.tool()
def profile_dataset(path: str) -> Profile:
    """
    Build the full data-quality profile of a dataset.

    Args:
        path: Path to a CSV or spreadsheet file

    Returns:
        Profile with completeness, type sets, duplicates, outliers,
        descriptive statistics, correlation matrix and health score

    Example:
        >>> profile_dataset("sales.csv")
    """
    return profiler.profile(loader.load(path).rows)


@mcp.tool()
def profile_records(records: List[Dict[str, Any]]) -> Profile:
    """Build the data-quality profile of rows passed inline as JSON objects."""
    return profiler.profile(rows_from_records(records))


@mcp.tool()
def profile_sample_dataset(n_rows: int = 1000, seed: int = 42) -> Profile:
    """Profile the built-in synthetic e-commerce dataset."""
    return profiler.profile(generate_sample(n_rows, seed=seed))


@mcp.tool()
def health_score(path: str) -> Dict[str, Any]:
    """Return the composite health score, its badge and a shareable summary."""
    dataset = loader.load(path)
    profile = profiler.profile(dataset.rows)
    subject, body = health_summary(dataset.name, profile)
    return {
        "score": profile.overall,
        "badge": profile.badge.label,
        "subject": subject,
        "summary": body,
    }


@mcp.tool()
def correlation_matrix(path: str) -> CorrelationMatrix:
    """Compute the Pearson correlation matrix for numeric columns."""
    return profiler.profile(loader.load(path).rows).correlation


@mcp.tool()
def quality_report(path: str) -> str:
    """
    Generate a markdown data quality report.

    Args:
        path: Path to a CSV or spreadsheet file

    Example:
        >>> quality_report("sales.csv")
    """
    dataset = loader.load(path)
    return quality_report_markdown(dataset.name, profiler.profile(dataset.rows))


@mcp.tool()
def deduplicate_dataset(path: str) -> str:
    """Return the dataset as CSV text with exact duplicate rows removed."""
    return deduplicated_csv(loader.load(path).rows)


if __name__ == "__main__":
    logging.basicConfig(
        stream=sys.stderr,
        level=os.environ.get("FEATURELAB_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mcp.run(transport="stdio")
    # mcp.run(transport="streamable-http")
