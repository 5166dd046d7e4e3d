"""
Prompt templates for the LLM judge

The system instruction is a fixed role/workflow preamble, the three
configurable rubric fragments, and a fixed output format block.
"""

import json

from ..types import CATEGORIES, EvalPrompts, Row

DEFAULT_PROMPTS = EvalPrompts(
    orchestration="""## Dimension 1: Orchestration (编排准确率)
对比 Agent Output 与 Ground Truth。
- 2分 (优质): 意图、核心参数完全一致，或仅有格式归一化差异。
- 1分 (可用): 核心意图正确，但遗漏非核心参数或格式有瑕疵。
- 0分 (不可用): 意图错误、关键参数缺失或有幻觉参数。""",
    tool="""## Dimension 2: Tool Output (工具输出效果)
分析 Tool Response 是否满足 User Query。
- 2分 (优质): 精准命中，无噪声，信息丰富。
- 1分 (可用): 包含目标数据，但存在噪声或未排序。
- 0分 (不可用): 无结果、结果不相关或 API 报错。""",
    summary="""## Dimension 3: Summary (总结输出效果)
检查 Final Response 基于 Tool Response 的回复质量。
- 2分 (优质): 结构清晰（分点/表格），有信息增益，完全准确。
- 1分 (可用): 准确复述但平淡，无结构感。
- 0分 (不可用): 存在幻觉、拒答、格式错误或敏感内容。""",
)

JUDGE_PREAMBLE = """You are a senior evaluator of tool-using AI agents.

You receive one test case: the user's query, the ground truth tool the agent
was expected to call, and the raw execution log of the agent. Work in order:

1. Classify the query into exactly one category: {categories}.
2. Mine the raw log for the agent's tool call (name and arguments) and judge
   it against the ground truth.
3. Mine the raw log for the tool's response and judge whether it satisfies
   the query.
4. Mine the raw log for the agent's final reply and judge its quality given
   the tool response.

Score each dimension with an integer 0, 1 or 2 using the rubrics below."""

OUTPUT_FORMAT = """## Output
Reply with a single JSON object and nothing else:
{
  "category": "<category>",
  "orchestration_eval": {"score": 0, "reason": "<why>"},
  "tool_eval": {"score": 0, "reason": "<why>"},
  "summary_eval": {"score": 0, "reason": "<why>"}
}"""


def build_system_instruction(prompts: EvalPrompts) -> str:
    """
    Build the judge system instruction

    Args:
        prompts: Rubric fragments for the three dimensions

    Returns:
        Full system instruction text
    """
    preamble = JUDGE_PREAMBLE.format(categories=", ".join(CATEGORIES))
    return "\n\n".join([preamble, prompts.orchestration, prompts.tool, prompts.summary, OUTPUT_FORMAT])


def build_user_payload(row: Row) -> str:
    return json.dumps(
        {
            "user_query": row.query,
            "ground_truth": row.tool,
            "raw_log": row.log,
        },
        ensure_ascii=False,
    )
