"""Shared fixtures: a scripted judge and zero-delay runners."""

from typing import Callable, List, Union

import pytest

from agenteval.eval.evaluator import RowEvaluator
from agenteval.eval.judge import BaseJudge, DEFAULT_PROMPTS, ParsedJudgeResponse
from agenteval.eval.runner import BatchRunner
from agenteval.eval.store import LocalStorage, TaskStore
from agenteval.eval.types import EvalPrompts, EvalStep, Row, RunPolicy

Reply = Union[ParsedJudgeResponse, Exception, Callable[[Row], ParsedJudgeResponse]]


def judge_reply(category="Simple_Basic", orchestration=2, tool=2, summary=2) -> ParsedJudgeResponse:
    """Build a validated judge reply; pass None to leave a dimension out."""

    def step(score):
        return None if score is None else EvalStep(score=score, reason=f"scored {score}")

    return ParsedJudgeResponse(
        category=category,
        steps={
            "orchestration_eval": step(orchestration),
            "tool_eval": step(tool),
            "summary_eval": step(summary),
        },
    )


class ScriptedJudge(BaseJudge):
    """Judge that replays scripted replies per query, then a default reply."""

    def __init__(self, default: Reply = None):
        self.default = default if default is not None else judge_reply()
        self.scripts = {}
        self.calls: List[str] = []

    def script(self, query: str, *replies: Reply) -> "ScriptedJudge":
        self.scripts.setdefault(query, []).extend(replies)
        return self

    def attempts(self, query: str) -> int:
        return self.calls.count(query)

    def score(self, row: Row, prompts: EvalPrompts) -> ParsedJudgeResponse:
        self.calls.append(row.query)
        queue = self.scripts.get(row.query)
        reply = queue.pop(0) if queue else self.default
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(row)
        return reply


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def prompts() -> EvalPrompts:
    return DEFAULT_PROMPTS


@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "state")


@pytest.fixture
def store(storage) -> TaskStore:
    return TaskStore(storage)


@pytest.fixture
def judge() -> ScriptedJudge:
    return ScriptedJudge()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def runner(store, judge, sleep) -> BatchRunner:
    return BatchRunner(store, RowEvaluator(judge), policy=RunPolicy(), sleep=sleep, show_progress=False)


@pytest.fixture
def rows() -> List[Row]:
    return [
        Row(query="weather in Paris", log="call weather(city=Paris) -> 18C", tool="weather"),
        Row(query="book a table", log="call booking(n=2) -> ok", tool="booking"),
        Row(query="convert 10 usd", log="call fx(usd=10) -> 9.2 eur", tool="fx"),
    ]
