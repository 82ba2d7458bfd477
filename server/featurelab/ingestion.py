"""Dataset file ingestion."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .dataclass import ListDatasetsOutput, LoadedDataset, PreviewDatasetOutput, Row

logger = logging.getLogger(__name__)

MAX_FILE_BYTES = 5 * 1024 * 1024
CSV_SUFFIXES = (".csv",)
EXCEL_SUFFIXES = (".xlsx", ".xlsm", ".xlsb", ".xls")


class DatasetLoadError(ValueError):
    """ファイルを完全なテーブルとして読み込めなかった場合のエラー"""


def _to_python(value: Any) -> Any:
    """numpy / pandas の値をPythonの値に変換 (欠損は空文字)"""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, (np.integer, np.floating, np.bool_)):
        return value.item()
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    return value


def _records(df: pd.DataFrame) -> List[Row]:
    columns = [str(column) for column in df.columns]
    return [
        {column: _to_python(value) for column, value in zip(columns, values)}
        for values in df.itertuples(index=False, name=None)
    ]


class DatasetLoader:
    """データディレクトリ配下のCSV / Excelファイルを行リストとして読み込むクラス"""

    def __init__(self, data_root: Path, max_bytes: int = MAX_FILE_BYTES):
        self.data_root = data_root
        self.max_bytes = max_bytes

    def _resolve_path(self, path: str) -> Path:
        """データセットパスの解決"""
        dataset_path = Path(path)
        if not dataset_path.is_absolute():
            dataset_path = self.data_root / dataset_path

        try:
            dataset_path = dataset_path.resolve(strict=True)
        except FileNotFoundError as exc:
            raise FileNotFoundError(f"Dataset file not found: {path}") from exc

        if self.data_root not in dataset_path.parents and dataset_path != self.data_root:
            raise ValueError("Dataset path must be located within the data directory")

        return dataset_path

    def list_datasets(self) -> ListDatasetsOutput:
        """データディレクトリ下の読み込み可能なファイルをリスト"""
        datasets: List[str] = []
        if self.data_root.exists():
            for dataset_file in sorted(self.data_root.rglob("*")):
                if dataset_file.suffix.lower() not in CSV_SUFFIXES + EXCEL_SUFFIXES:
                    continue
                try:
                    datasets.append(str(dataset_file.relative_to(self.data_root)))
                except ValueError:
                    datasets.append(str(dataset_file))
        return ListDatasetsOutput(data_root=str(self.data_root), datasets=datasets)

    def load(self, path: str) -> LoadedDataset:
        """
        ファイルを読み込み、全行を返す

        Args:
            path: データディレクトリからの相対パス、または絶対パス
        """
        dataset_path = self._resolve_path(path)
        if dataset_path.stat().st_size > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise DatasetLoadError(f"File is larger than {limit_mb}MB limit.")

        suffix = dataset_path.suffix.lower()
        if suffix in EXCEL_SUFFIXES:
            df = self._read_excel(dataset_path)
        elif suffix in CSV_SUFFIXES:
            df = self._read_csv(dataset_path)
        else:
            raise DatasetLoadError(f"Unsupported file type: {suffix or dataset_path.name}")

        rows = _records(df)
        logger.info("Loaded %s: %d rows, %d columns", dataset_path.name, len(rows), len(df.columns))
        return LoadedDataset(
            name=dataset_path.name,
            path=str(dataset_path),
            columns=[str(column) for column in df.columns],
            rows=rows,
        )

    def preview(self, path: str, n_rows: int = 5) -> PreviewDatasetOutput:
        """先頭n行を返す"""
        dataset = self.load(path)
        return PreviewDatasetOutput(
            path=dataset.path,
            n_rows=min(n_rows, len(dataset.rows)),
            columns=dataset.columns,
            rows=dataset.rows[:n_rows],
        )

    @staticmethod
    def _read_csv(dataset_path: Path) -> pd.DataFrame:
        # 全セルを文字列のまま読み、空セルは空文字にする
        try:
            return pd.read_csv(
                dataset_path,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
            )
        except pd.errors.EmptyDataError:
            return pd.DataFrame()
        except (pd.errors.ParserError, UnicodeDecodeError) as exc:
            logger.warning("CSV parse failure for %s: %s", dataset_path, exc)
            raise DatasetLoadError("Failed to parse CSV") from exc

    @staticmethod
    def _read_excel(dataset_path: Path, sheet_name: Optional[Any] = 0) -> pd.DataFrame:
        try:
            return pd.read_excel(dataset_path, sheet_name=sheet_name, dtype=object)
        except (ValueError, ImportError, OSError, zipfile.BadZipFile) as exc:
            logger.warning("Excel parse failure for %s: %s", dataset_path, exc)
            raise DatasetLoadError("Failed to parse Excel file") from exc


def rows_from_records(records: List[Dict[str, Any]]) -> List[Row]:
    """JSONなどから渡されたレコードをそのまま行として扱う (浅いコピー)"""
    return [dict(record) for record in records]
