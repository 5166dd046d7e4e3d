"""
Row evaluator

Runs the full lifecycle of one row: call the judge, map the validated reply
to an EvaluationEntry, and turn failures into a terminal error entry.
"""

from agenteval.utils.log import logger
from .errors import RateLimited
from .judge import BaseJudge, ParsedJudgeResponse
from .types import (
    CATEGORIES,
    DIMENSIONS,
    ERROR_CATEGORY,
    STANDARD_CATEGORY,
    EvalPrompts,
    EvalStep,
    EvaluationEntry,
    Row,
)


class RowEvaluator:
    """Turns one Row into one EvaluationEntry"""

    def __init__(self, judge: BaseJudge):
        self.judge = judge

    def evaluate(self, row: Row, prompts: EvalPrompts, retryable: bool = False) -> EvaluationEntry:
        """
        Evaluate a single row

        Args:
            row: Row to evaluate
            prompts: Rubric fragments passed to the judge
            retryable: Re-raise RateLimited so the caller can back off and
                try again. When False a rate limit becomes an error entry.

        Returns:
            Entry for the row, with category "Error" if the judge failed

        Raises:
            RateLimited: Only when retryable is True
        """
        try:
            response = self.judge.score(row, prompts)
        except RateLimited as e:
            if retryable:
                raise
            logger.error(f"Rate limit retries exhausted for query {row.query[:40]!r}: {e}")
            return self.error_entry(row, e)
        except Exception as e:
            logger.error(f"Judge failed for query {row.query[:40]!r}: {e}")
            return self.error_entry(row, e)

        return self.build_entry(row, response)

    def build_entry(self, row: Row, response: ParsedJudgeResponse) -> EvaluationEntry:
        category = response.category or STANDARD_CATEGORY
        if category not in CATEGORIES and category != STANDARD_CATEGORY:
            logger.warning(f"Judge returned unknown category {category!r}, using {STANDARD_CATEGORY}")
            category = STANDARD_CATEGORY

        steps = {
            name: response.steps.get(name) or EvalStep.not_available()
            for name in DIMENSIONS
        }
        return self._entry(row, category, **steps)

    def error_entry(self, row: Row, error: Exception) -> EvaluationEntry:
        reason = f"Evaluation failed ({type(error).__name__}): {error}"
        return self._entry(
            row,
            ERROR_CATEGORY,
            orchestration_eval=EvalStep(score=0, reason=reason),
            tool_eval=EvalStep(score=0, reason=reason),
            summary_eval=EvalStep(score=0, reason=reason),
        )

    @staticmethod
    def _entry(row: Row, category: str, **steps: EvalStep) -> EvaluationEntry:
        # The dataset carries one raw log; all three views read it differently
        return EvaluationEntry(
            user_query=row.query,
            category=category,
            ground_truth=row.tool,
            agent_output=row.log,
            tool_name=row.tool,
            tool_response=row.log,
            final_response=row.log,
            **steps,
        )
