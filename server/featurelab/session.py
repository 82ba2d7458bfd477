"""Profiling session where the most recent table wins."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from .dataclass import AnalysisResult, Profile, Row, SuggestionBatch
from .profiler import DatasetProfiler
from .suggestions import FeatureSuggestionEngine

logger = logging.getLogger(__name__)


class AnalysisSession:
    """テーブルが更新されるたびにプロファイルと提案を作り直すクラス

    古いテーブルの結果が新しいテーブルの結果を上書きすることはない。
    """

    def __init__(
        self,
        profiler: Optional[DatasetProfiler] = None,
        engine: Optional[FeatureSuggestionEngine] = None,
        delay: float = 0.0,
    ):
        self.profiler = profiler or DatasetProfiler()
        self.engine = engine or FeatureSuggestionEngine()
        self.delay = delay
        self.latest: Optional[AnalysisResult] = None
        self._generation = 0
        self._pending: Optional[asyncio.Task] = None

    def analyze(self, rows: Sequence[Row]) -> AnalysisResult:
        """同期的に全て再計算"""
        self._generation += 1
        self._cancel_pending()
        profile = self.profiler.profile(rows)
        self.latest = AnalysisResult(
            profile=profile,
            suggestions=self.engine.generate_for_profile(rows, profile),
        )
        return self.latest

    async def submit(self, rows: Sequence[Row]) -> Optional[AnalysisResult]:
        """
        非同期版。提案生成の前に ``delay`` 秒待つ。

        後から別のテーブルが投入された場合は None を返し、latest は更新しない。
        """
        self._generation += 1
        generation = self._generation
        self._cancel_pending()

        profile = self.profiler.profile(rows)
        task = asyncio.ensure_future(self._suggest(rows, profile))
        self._pending = task
        try:
            suggestions = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug("Discarded superseded analysis run %d", generation)
                return None
            raise

        if generation != self._generation:
            return None
        self._pending = None
        self.latest = AnalysisResult(profile=profile, suggestions=suggestions)
        return self.latest

    async def _suggest(self, rows: Sequence[Row], profile: Profile) -> SuggestionBatch:
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.engine.generate_for_profile(rows, profile)

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
