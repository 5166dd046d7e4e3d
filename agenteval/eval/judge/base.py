"""
Base classes for judge implementations
"""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from ..errors import MalformedResponse
from ..types import DIMENSIONS, EvalPrompts, EvalStep, Row

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class JudgeStep(BaseModel):
    """Wire shape of one scored dimension"""
    score: int = Field(ge=0, le=2)
    reason: str = ""


class JudgeReply(BaseModel):
    """Wire shape of the whole judge reply; steps are validated one by one"""
    category: Optional[str] = None
    orchestration_eval: Optional[Any] = None
    tool_eval: Optional[Any] = None
    summary_eval: Optional[Any] = None


@dataclass
class ParsedJudgeResponse:
    """
    Validated judge response

    A step is None when the judge left it out, and an EvalStep with score 0
    and a diagnostic reason when it was present but invalid.
    """
    category: Optional[str]
    steps: Dict[str, Optional[EvalStep]] = field(default_factory=dict)


def _validate_step(name: str, value: Any) -> Optional[EvalStep]:
    if value is None:
        return None
    try:
        step = JudgeStep.model_validate(value)
    except ValidationError as e:
        errors = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        return EvalStep(score=0, reason=f"Invalid {name} from judge: {errors}")
    return EvalStep(score=step.score, reason=step.reason)


def parse_judge_response(content: Optional[str]) -> ParsedJudgeResponse:
    """
    Parse raw judge text into a ParsedJudgeResponse

    Raises:
        MalformedResponse: If the text is not a JSON object
    """
    if not content or not content.strip():
        raise MalformedResponse("Empty response from judge")

    text = content.strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"Judge response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedResponse(f"Judge response is a {type(data).__name__}, expected an object")

    try:
        reply = JudgeReply.model_validate(data)
    except ValidationError as e:
        raise MalformedResponse(f"Judge response has an unexpected shape: {e}") from e

    category = reply.category.strip() if reply.category and reply.category.strip() else None
    steps = {name: _validate_step(name, getattr(reply, name)) for name in DIMENSIONS}
    return ParsedJudgeResponse(category=category, steps=steps)


class BaseJudge(ABC):
    """Base class for judge clients"""

    @abstractmethod
    def score(self, row: Row, prompts: EvalPrompts) -> ParsedJudgeResponse:
        """
        Score one row with exactly one request to the judge service

        Args:
            row: Row to evaluate
            prompts: Rubric fragments for the system instruction

        Returns:
            Validated judge response

        Raises:
            RateLimited: The service signalled a rate limit
            ServiceError: Any other service failure
            MalformedResponse: The reply is not the expected JSON object
        """
        pass
