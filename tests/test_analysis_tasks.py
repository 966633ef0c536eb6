"""
Tests for the background analysis task runner.

Run with: python -m pytest tests/test_analysis_tasks.py -v
"""

import asyncio

import pytest

from moodjournal.schemas.mood import AnalysisResult
from moodjournal.services.analysis_tasks import AnalysisTaskRunner


class FakeAnalyzer:
    """Stands in for MoodAnalysisService.analyze_entry."""

    def __init__(self, outcomes=None, delay=0.0):
        self.outcomes = outcomes or {}
        self.delay = delay
        self.calls = []
        self.active = 0
        self.max_active = 0

    async def analyze_entry(self, entry_id, *, use_context=True):
        self.calls.append((entry_id, use_context))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            outcome = self.outcomes.get(entry_id, "ok")
            if isinstance(outcome, Exception):
                raise outcome
            if outcome is None:
                return None
            return AnalysisResult(overall_sentiment="neutral")
        finally:
            self.active -= 1


class TestAnalysisTaskRunner:
    """Tests for scheduling, counters and bounded concurrency."""

    @pytest.mark.asyncio
    async def test_counts_every_outcome(self):
        analyzer = FakeAnalyzer({2: None, 3: RuntimeError("boom")})
        runner = AnalysisTaskRunner(analyzer, max_concurrency=2, timeout=1)

        for entry_id in (1, 2, 3):
            runner.submit(entry_id)
        await runner.drain()

        assert runner.snapshot() == {
            "submitted": 3,
            "succeeded": 1,
            "failed": 1,
            "timed_out": 0,
            "skipped": 1,
            "pending": 0,
        }

    @pytest.mark.asyncio
    async def test_timeout(self):
        runner = AnalysisTaskRunner(FakeAnalyzer(delay=1.0), timeout=0.01)
        runner.submit(7)
        await runner.drain()
        assert runner.stats.timed_out == 1
        assert runner.stats.succeeded == 0

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        analyzer = FakeAnalyzer(delay=0.02)
        runner = AnalysisTaskRunner(analyzer, max_concurrency=2, timeout=1)
        for entry_id in range(6):
            runner.submit(entry_id)
        assert runner.pending == 6
        await runner.drain()
        assert analyzer.max_active == 2
        assert runner.stats.succeeded == 6

    @pytest.mark.asyncio
    async def test_mode_is_forwarded(self):
        analyzer = FakeAnalyzer()
        runner = AnalysisTaskRunner(analyzer, timeout=1)
        runner.submit(1, use_context=False)
        await runner.drain()
        assert analyzer.calls == [(1, False)]

    def test_submit_requires_running_loop(self):
        runner = AnalysisTaskRunner(FakeAnalyzer(), timeout=1)
        with pytest.raises(RuntimeError):
            runner.submit(1)
