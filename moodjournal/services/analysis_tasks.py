"""
Background mood analysis.

Entry writes hand the entry id to ``AnalysisTaskRunner.submit`` and return
immediately; clients re-fetch to see the result. Tasks run on the event loop
with bounded concurrency and a per-task timeout.

Two analyses of the same entry are not serialized: whichever finishes last
owns the stored analysis and embedding.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Dict, Optional, Set

from moodjournal.core.config import settings
from moodjournal.services.mood_analysis_service import MoodAnalysisService

logger = logging.getLogger(__name__)


@dataclass
class TaskStats:
    submitted: int = 0
    succeeded: int = 0
    failed: int = 0
    timed_out: int = 0
    skipped: int = 0


class AnalysisTaskRunner:
    def __init__(
        self,
        analyzer: Optional[MoodAnalysisService] = None,
        *,
        max_concurrency: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.analyzer = analyzer or MoodAnalysisService()
        self.max_concurrency = max(1, max_concurrency or settings.ANALYSIS_MAX_CONCURRENCY)
        self.timeout = timeout or settings.ANALYSIS_TASK_TIMEOUT_SECONDS
        self.stats = TaskStats()
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _get_semaphore(self) -> asyncio.Semaphore:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrency)
        return self._semaphore

    def submit(self, entry_id: int, *, use_context: bool = True) -> asyncio.Task:
        """Schedule analysis of ``entry_id``; must be called from a running loop."""
        task = asyncio.get_running_loop().create_task(
            self._run(entry_id, use_context), name=f"mood-analysis-{entry_id}"
        )
        self.stats.submitted += 1
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, entry_id: int, use_context: bool) -> None:
        async with self._get_semaphore():
            try:
                result = await asyncio.wait_for(
                    self.analyzer.analyze_entry(entry_id, use_context=use_context),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError:
                self.stats.timed_out += 1
                logger.error(f"[Tasks] analysis of entry {entry_id} timed out after {self.timeout}s")
            except Exception as e:
                self.stats.failed += 1
                logger.error(f"[Tasks] analysis of entry {entry_id} failed: {e}")
            else:
                if result is None:
                    self.stats.skipped += 1
                else:
                    self.stats.succeeded += 1

    async def drain(self) -> None:
        """Wait for every task submitted so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def snapshot(self) -> Dict[str, int]:
        data = asdict(self.stats)
        data["pending"] = self.pending
        return data
