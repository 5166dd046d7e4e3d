"""
Type definitions for the agent log evaluation engine
"""

import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

CATEGORIES = (
    "Simple_Basic",
    "Complex_Reasoning",
    "Multi_turn_Clarification",
    "Ambiguity_Robustness",
)
STANDARD_CATEGORY = "Standard"
ERROR_CATEGORY = "Error"

DIMENSIONS = ("orchestration_eval", "tool_eval", "summary_eval")

STATUS_PROCESSING = "processing"
STATUS_DONE = "done"


def new_id() -> str:
    return uuid.uuid4().hex[:12]


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Row:
    """One parsed record of the uploaded dataset"""
    query: str
    log: str = ""
    tool: str = ""


@dataclass
class EvalStep:
    """Score for a single dimension: 0 unusable, 1 usable with flaws, 2 excellent"""
    score: int
    reason: str

    @classmethod
    def not_available(cls) -> "EvalStep":
        return cls(score=0, reason="N/A")


@dataclass
class EvaluationEntry:
    """Finished verdict for one row"""
    user_query: str
    category: str
    ground_truth: str
    agent_output: str
    tool_name: str
    tool_response: str
    final_response: str
    orchestration_eval: EvalStep
    tool_eval: EvalStep
    summary_eval: EvalStep
    id: str = field(default_factory=new_id)
    timestamp: str = field(default_factory=utc_now)

    @property
    def steps(self) -> List[EvalStep]:
        return [self.orchestration_eval, self.tool_eval, self.summary_eval]

    @property
    def total_score(self) -> int:
        return sum(step.score for step in self.steps)

    @property
    def mean_score(self) -> float:
        return self.total_score / len(DIMENSIONS)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EvaluationEntry":
        values = dict(data)
        for dimension in DIMENSIONS:
            values[dimension] = EvalStep(**values[dimension])
        return cls(**values)


@dataclass
class EvalSummary:
    avg_score: float = 0.0
    total: int = 0
    pass_rate: int = 0


@dataclass
class EvalTask:
    """One evaluation run over one uploaded dataset"""
    file_name: str
    rows: List[Row]
    id: str = field(default_factory=new_id)
    timestamp: str = field(default_factory=utc_now)
    status: str = STATUS_PROCESSING
    data: List[EvaluationEntry] = field(default_factory=list)
    summary: EvalSummary = field(default_factory=EvalSummary)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "file_name": self.file_name,
            "timestamp": self.timestamp,
            "status": self.status,
            "rows": [asdict(row) for row in self.rows],
            "data": [entry.to_dict() for entry in self.data],
            "summary": asdict(self.summary),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EvalTask":
        return cls(
            id=data["id"],
            file_name=data["file_name"],
            timestamp=data["timestamp"],
            status=data["status"],
            rows=[Row(**row) for row in data.get("rows", [])],
            data=[EvaluationEntry.from_dict(entry) for entry in data.get("data", [])],
            summary=EvalSummary(**data.get("summary", {})),
        )


@dataclass
class EvalPrompts:
    """Per-dimension rubric fragments injected into the judge instruction"""
    orchestration: str
    tool: str
    summary: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class JudgeConfig:
    """Judge model configuration"""
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RunPolicy:
    """Retry, throttling and pass threshold for a batch run"""
    max_attempts: int = 2
    backoff_seconds: float = 10.0
    inter_row_delay_seconds: float = 3.0
    pass_threshold: float = 1.5
