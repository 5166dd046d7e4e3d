"""
OpenAI compatible judge client

Sends one chat completion per row and asks for a JSON object reply. Works
against any OpenAI compatible endpoint via base_url.
"""

import re
from typing import Optional

import openai
from openai import OpenAI

from agenteval.utils.log import logger
from ..errors import RateLimited, ServiceError
from ..types import EvalPrompts, JudgeConfig, Row
from .base import BaseJudge, ParsedJudgeResponse, parse_judge_response
from .prompt import build_system_instruction, build_user_payload

RATE_LIMIT_MARKERS = ("resource_exhausted", "rate limit", "rate_limit")
RATE_LIMIT_STATUS = re.compile(r"\b429\b")


def is_rate_limit(error: Exception) -> bool:
    """Tell a rate limit signal apart from other failures"""
    if isinstance(error, openai.RateLimitError):
        return True
    if getattr(error, "status_code", None) == 429:
        return True
    message = str(error).lower()
    if RATE_LIMIT_STATUS.search(message):
        return True
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


class OpenAIJudge(BaseJudge):
    """Judge backed by the OpenAI chat completions API"""

    def __init__(self, config: JudgeConfig, client: Optional[OpenAI] = None):
        self.config = config
        # Retries are owned by the batch runner, the SDK must not retry on its own
        self._client = client or OpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            max_retries=0,
        )

    def score(self, row: Row, prompts: EvalPrompts) -> ParsedJudgeResponse:
        messages = [
            {"role": "system", "content": build_system_instruction(prompts)},
            {"role": "user", "content": build_user_payload(row)},
        ]

        try:
            response = self._client.chat.completions.create(
                model=self.config.model,
                messages=messages,
                response_format={"type": "json_object"},
                **self.config.params,
            )
        except Exception as e:
            if is_rate_limit(e):
                logger.warning(f"Judge rate limited: {e}")
                raise RateLimited(str(e)) from e
            logger.error(f"Judge request failed: {e}")
            raise ServiceError(f"{type(e).__name__}: {e}") from e

        if not response.choices:
            return parse_judge_response(None)
        content = response.choices[0].message.content
        logger.debug(f"Judge replied with {len(content or '')} chars for query {row.query[:40]!r}")
        return parse_judge_response(content)
