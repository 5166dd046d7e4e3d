"""
Judge clients

A judge scores one dataset row against the configured rubrics. The batch
runner only depends on BaseJudge, so any client can be plugged in.
"""

from .base import BaseJudge, JudgeStep, ParsedJudgeResponse, parse_judge_response
from .openai_judge import OpenAIJudge, is_rate_limit
from .prompt import DEFAULT_PROMPTS, build_system_instruction, build_user_payload

__all__ = [
    'BaseJudge',
    'JudgeStep',
    'ParsedJudgeResponse',
    'parse_judge_response',
    'OpenAIJudge',
    'is_rate_limit',
    'DEFAULT_PROMPTS',
    'build_system_instruction',
    'build_user_payload',
]

# Registry for judge providers selectable from config
AVAILABLE_JUDGES = {
    'openai': OpenAIJudge,
}
