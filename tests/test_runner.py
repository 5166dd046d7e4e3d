"""End-to-end tests for the batch runner state machine."""

import asyncio

import pytest

from agenteval.eval.errors import RateLimited, ServiceError, TaskNotFoundError
from agenteval.eval.evaluator import RowEvaluator
from agenteval.eval.runner import BatchRunner
from agenteval.eval.stats import round_half_up
from agenteval.eval.types import RunPolicy

from .conftest import RecordingSleep, ScriptedJudge, judge_reply


def run(coro):
    return asyncio.run(coro)


class TestBatchRunner:
    def test_all_excellent(self, runner, store, rows, prompts) -> None:
        task_id = store.create("data.csv", rows)

        assert run(runner.run(task_id, prompts)) is True

        task = store.get(task_id)
        assert task.status == "done"
        assert task.summary.total == 3
        assert task.summary.avg_score == 2.0
        assert task.summary.pass_rate == 100
        assert [entry.user_query for entry in task.data] == [row.query for row in rows]

    def test_throttles_between_rows_only(self, runner, store, rows, prompts, sleep) -> None:
        task_id = store.create("data.csv", rows)
        run(runner.run(task_id, prompts))
        assert sleep.delays == [3.0, 3.0]

    def test_rate_limit_then_success(self, runner, store, judge, rows, prompts, sleep) -> None:
        judge.script(rows[1].query, RateLimited("429 Too Many Requests"))
        task_id = store.create("data.csv", rows)

        run(runner.run(task_id, prompts))

        task = store.get(task_id)
        assert judge.attempts(rows[1].query) == 2
        assert task.data[1].category == "Simple_Basic"
        assert task.summary.total == 3
        assert task.summary.pass_rate == 100
        assert sleep.delays == [3.0, 10.0, 3.0]

    def test_rate_limit_exhausts_retry_budget(self, runner, store, judge, rows, prompts) -> None:
        judge.script(rows[0].query, RateLimited("429"), RateLimited("429"))
        task_id = store.create("data.csv", rows)

        run(runner.run(task_id, prompts))

        task = store.get(task_id)
        assert judge.attempts(rows[0].query) == 2
        assert task.data[0].category == "Error"
        assert "RateLimited" in task.data[0].tool_eval.reason
        assert [entry.category for entry in task.data[1:]] == ["Simple_Basic", "Simple_Basic"]

    def test_service_error_does_not_abort_batch(self, runner, store, judge, rows, prompts) -> None:
        judge.script(rows[0].query, ServiceError("upstream 500"))
        task_id = store.create("data.csv", rows)

        run(runner.run(task_id, prompts))

        task = store.get(task_id)
        assert judge.attempts(rows[0].query) == 1
        assert task.data[0].category == "Error"
        assert [step.score for step in task.data[0].steps] == [0, 0, 0]
        assert [entry.category for entry in task.data[1:]] == ["Simple_Basic", "Simple_Basic"]
        assert task.summary.total == 3
        assert task.summary.avg_score == round_half_up(12 / 9, 1)
        assert task.summary.pass_rate == 67

    def test_every_row_failing_still_finishes(self, store, rows, prompts) -> None:
        judge = ScriptedJudge(ServiceError("down"))
        runner = BatchRunner(store, RowEvaluator(judge), sleep=RecordingSleep(), show_progress=False)
        task_id = store.create("data.csv", rows)

        run(runner.run(task_id, prompts))

        task = store.get(task_id)
        assert task.status == "done"
        assert [entry.category for entry in task.data] == ["Error"] * 3
        assert task.summary.avg_score == 0.0
        assert task.summary.pass_rate == 0

    def test_partial_results_are_published(self, store, rows, prompts) -> None:
        observed = []

        class ObservingSleep(RecordingSleep):
            async def __call__(self, seconds: float) -> None:
                task = store.get(task_id)
                observed.append((task.status, len(task.data)))

        runner = BatchRunner(store, RowEvaluator(ScriptedJudge()), sleep=ObservingSleep(), show_progress=False)
        task_id = store.create("data.csv", rows)

        run(runner.run(task_id, prompts))

        assert observed == [("processing", 1), ("processing", 2)]

    def test_rerun_replaces_previous_results(self, runner, store, judge, rows, prompts) -> None:
        task_id = store.create("data.csv", rows)
        run(runner.run(task_id, prompts))
        first_ids = [entry.id for entry in store.get(task_id).data]

        judge.default = judge_reply(orchestration=1, tool=1, summary=1)
        run(runner.rerun(task_id, prompts))

        task = store.get(task_id)
        assert task.status == "done"
        assert len(task.data) == 3
        assert not set(first_ids) & {entry.id for entry in task.data}
        assert task.summary.avg_score == 1.0
        assert task.summary.pass_rate == 0

    def test_second_run_while_processing_is_ignored(self, store, rows, prompts) -> None:
        judge = ScriptedJudge()

        async def scenario():
            started = asyncio.Event()
            release = asyncio.Event()

            async def gated_sleep(seconds: float) -> None:
                started.set()
                await release.wait()

            runner = BatchRunner(store, RowEvaluator(judge), sleep=gated_sleep, show_progress=False)
            task_id = store.create("data.csv", rows)
            first = asyncio.ensure_future(runner.run(task_id, prompts))
            await started.wait()

            assert runner.is_running(task_id)
            second = await runner.run(task_id, prompts)
            rerun = await runner.rerun(task_id, prompts)

            release.set()
            return task_id, await first, second, rerun

        task_id, first, second, rerun = run(scenario())

        assert (first, second, rerun) == (True, False, False)
        assert len(judge.calls) == 3
        assert len(store.get(task_id).data) == 3

    def test_deleted_task_stops_the_run(self, store, rows, prompts) -> None:
        judge = ScriptedJudge()

        async def delete_on_first_pause(seconds: float) -> None:
            store.delete(task_id)

        runner = BatchRunner(store, RowEvaluator(judge), sleep=delete_on_first_pause, show_progress=False)
        task_id = store.create("data.csv", rows)

        assert run(runner.run(task_id, prompts)) is True
        assert store.get(task_id) is None
        assert len(judge.calls) == 2
        assert not runner.is_running(task_id)

    def test_unknown_task(self, runner, prompts) -> None:
        with pytest.raises(TaskNotFoundError):
            run(runner.run("missing", prompts))

    def test_custom_policy(self, store, rows, prompts) -> None:
        judge = ScriptedJudge(judge_reply(orchestration=2, tool=1, summary=1))
        sleep = RecordingSleep()
        policy = RunPolicy(max_attempts=3, backoff_seconds=1, inter_row_delay_seconds=0.5, pass_threshold=1.3)
        judge.script(rows[2].query, RateLimited("429"), RateLimited("429"))
        runner = BatchRunner(store, RowEvaluator(judge), policy=policy, sleep=sleep, show_progress=False)
        task_id = store.create("data.csv", rows)

        run(runner.run(task_id, prompts))

        task = store.get(task_id)
        assert judge.attempts(rows[2].query) == 3
        assert task.data[2].category == "Simple_Basic"
        assert task.summary.pass_rate == 100
        assert sleep.delays == [0.5, 0.5, 1, 1]
