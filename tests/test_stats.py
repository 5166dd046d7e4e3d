"""Tests for summary and overview statistics."""

import pytest

from agenteval.eval.stats import category_breakdown, overview, round_half_up, summarize
from agenteval.eval.types import EvalStep, EvalSummary, EvaluationEntry


def _entry(scores, category="Simple_Basic") -> EvaluationEntry:
    o, t, s = (EvalStep(score=score, reason="") for score in scores)
    return EvaluationEntry(
        user_query="q",
        category=category,
        ground_truth="",
        agent_output="",
        tool_name="",
        tool_response="",
        final_response="",
        orchestration_eval=o,
        tool_eval=t,
        summary_eval=s,
    )


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value, digits, expected",
        [(1.25, 1, 1.3), (1.35, 1, 1.4), (0.45, 1, 0.5), (66.5, 0, 67.0), (2.0, 1, 2.0)],
    )
    def test_rounds_half_up(self, value, digits, expected) -> None:
        assert round_half_up(value, digits) == expected


class TestSummarize:
    def test_empty(self) -> None:
        assert summarize([]) == EvalSummary(avg_score=0.0, total=0, pass_rate=0)

    def test_mixed_scores(self) -> None:
        entries = [_entry((2, 2, 2)), _entry((2, 1, 1)), _entry((0, 0, 1))]
        summary = summarize(entries)
        # (6 + 4 + 1) / 9 = 1.22
        assert summary.avg_score == 1.2
        assert summary.total == 3
        assert summary.pass_rate == 33

    def test_pass_threshold_is_inclusive(self) -> None:
        # mean of (2, 1, 2) is 1.67, (2, 1, 1) is 1.33
        entries = [_entry((2, 1, 2)), _entry((2, 1, 1))]
        assert summarize(entries).pass_rate == 50
        assert summarize(entries, pass_threshold=4 / 3).pass_rate == 100

    def test_pass_rate_is_integer_percentage(self) -> None:
        entries = [_entry((2, 2, 2))] + [_entry((0, 0, 0))] * 2
        summary = summarize(entries)
        assert isinstance(summary.pass_rate, int)
        assert 0 <= summary.pass_rate <= 100

    def test_avg_matches_direct_recomputation(self) -> None:
        entries = [_entry((i % 3, (i + 1) % 3, (i * 2) % 3)) for i in range(17)]
        direct = sum(e.orchestration_eval.score + e.tool_eval.score + e.summary_eval.score for e in entries)
        assert summarize(entries).avg_score == round(direct / (3 * len(entries)), 1)


class TestOverview:
    def test_counts(self) -> None:
        entries = [
            _entry((2, 2, 2), "Simple_Basic"),
            _entry((1, 1, 1), "Simple_Basic"),
            _entry((0, 0, 1), "Complex_Reasoning"),
            _entry((0, 0, 0), "Error"),
        ]

        stats = overview(entries)

        assert stats["total"] == 4
        assert stats["passed"] == 1
        assert stats["critical"] == 2
        assert stats["errors"] == 1
        assert stats["dimensions"]["orchestration_eval"] == pytest.approx(0.75)
        assert stats["dimensions"]["summary_eval"] == pytest.approx(1.0)

    def test_category_breakdown(self) -> None:
        entries = [
            _entry((2, 0, 0), "Simple_Basic"),
            _entry((1, 0, 0), "Simple_Basic"),
            _entry((1, 0, 0), "Simple_Basic"),
            _entry((0, 0, 0), "Simple_Basic"),
        ]

        breakdown = category_breakdown(entries)

        assert set(breakdown) == {
            "Simple_Basic",
            "Complex_Reasoning",
            "Multi_turn_Clarification",
            "Ambiguity_Robustness",
        }
        simple = breakdown["Simple_Basic"]
        assert simple["count"] == 4
        assert simple["sub_score"] == 1.0
        assert simple["excellent_pct"] == 25.0
        assert simple["acceptable_pct"] == 50.0
        assert simple["fail_pct"] == 25.0
        assert breakdown["Complex_Reasoning"] == {
            "count": 0,
            "sub_score": 0.0,
            "excellent_pct": 0.0,
            "acceptable_pct": 0.0,
            "fail_pct": 0.0,
        }

    def test_empty(self) -> None:
        stats = overview([])
        assert stats["total"] == 0
        assert stats["dimensions"] == {"orchestration_eval": 0.0, "tool_eval": 0.0, "summary_eval": 0.0}
