"""
Batch runner

Drives the row evaluator over every row of a task, strictly in order:

    for each row:
        evaluate, retrying after a backoff while the judge is rate limited
        append the entry to the task and publish it
        wait before the next row
    compute the summary and mark the task done

Sleeps go through asyncio so that only this task's coroutine is suspended.
The blocking judge call runs in a worker thread.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional, Set

from tqdm import tqdm

from agenteval.utils.log import logger
from .errors import RateLimited, TaskNotFoundError
from .evaluator import RowEvaluator
from .stats import summarize
from .store import TaskStore
from .types import EvalPrompts, EvalSummary, EvaluationEntry, Row, RunPolicy

Sleep = Callable[[float], Awaitable[None]]


class BatchRunner:
    """Sequential evaluation of one task at a time per task id"""

    def __init__(
        self,
        store: TaskStore,
        evaluator: RowEvaluator,
        policy: Optional[RunPolicy] = None,
        sleep: Sleep = asyncio.sleep,
        show_progress: bool = True,
    ):
        self.store = store
        self.evaluator = evaluator
        self.policy = policy or RunPolicy()
        self._sleep = sleep
        self.show_progress = show_progress
        self._active: Set[str] = set()

    def is_running(self, task_id: str) -> bool:
        return task_id in self._active

    async def run(self, task_id: str, prompts: EvalPrompts) -> bool:
        """
        Evaluate every row of a task and finalize it

        The task is reset first, so running a finished task replaces its
        previous results.

        Args:
            task_id: Task created in the store
            prompts: Rubric snapshot used for the whole run

        Returns:
            False if a run for this task is already in progress, True once
            the run has ended (finished, or stopped because the task was
            deleted)

        Raises:
            TaskNotFoundError: If the task does not exist
        """
        if task_id in self._active:
            logger.warning(f"Task {task_id} is already running, ignoring")
            return False
        if not self.store.reset(task_id):
            raise TaskNotFoundError(task_id)
        task = self.store.get(task_id)

        self._active.add(task_id)
        try:
            await self._run_rows(task_id, task.file_name, task.rows, prompts)
        finally:
            self._active.discard(task_id)
        return True

    async def rerun(self, task_id: str, prompts: EvalPrompts) -> bool:
        """Clear a task's results and run it again; no-op while it is running"""
        logger.info(f"Re-running task {task_id}")
        return await self.run(task_id, prompts)

    async def _run_rows(self, task_id: str, file_name: str, rows: List[Row], prompts: EvalPrompts) -> None:
        logger.info(f"Starting task {task_id}: {len(rows)} rows from {file_name}")
        entries = []

        with tqdm(total=len(rows), desc=f"Evaluating {file_name}", disable=not self.show_progress) as pbar:
            for index, row in enumerate(rows):
                entry = await self._evaluate_row(index, row, prompts)
                if not self.store.append_entry(task_id, entry):
                    logger.info(f"Task {task_id} was deleted, stopping after {index} rows")
                    return
                entries.append(entry)
                pbar.update(1)
                logger.debug(f"Row {index} evaluated as {entry.category} with scores {[s.score for s in entry.steps]}")

                if index < len(rows) - 1:
                    await self._sleep(self.policy.inter_row_delay_seconds)

        summary = summarize(entries, self.policy.pass_threshold)
        if not self.store.finalize(task_id, summary):
            logger.info(f"Task {task_id} was deleted before it could be finalized")
            return
        self._log_summary(task_id, summary)

    async def _evaluate_row(self, index: int, row: Row, prompts: EvalPrompts) -> EvaluationEntry:
        max_attempts = max(1, self.policy.max_attempts)
        for attempt in range(1, max_attempts):
            try:
                return await asyncio.to_thread(self.evaluator.evaluate, row, prompts, True)
            except RateLimited:
                logger.warning(
                    f"Row {index} rate limited on attempt {attempt}/{max_attempts}, "
                    f"backing off {self.policy.backoff_seconds}s"
                )
                await self._sleep(self.policy.backoff_seconds)
        # Last attempt: a rate limit now becomes an error entry
        return await asyncio.to_thread(self.evaluator.evaluate, row, prompts, False)

    @staticmethod
    def _log_summary(task_id: str, summary: EvalSummary) -> None:
        logger.info(
            f"Task {task_id} done: total={summary.total} "
            f"avg_score={summary.avg_score} pass_rate={summary.pass_rate}%"
        )
