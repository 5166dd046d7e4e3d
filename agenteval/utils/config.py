"""
Configuration loading

Example (YAML):

    judge:
      provider: openai
      model: gpt-4o-mini
      base_url: https://api.openai.com/v1
      params:
        temperature: 0
    policy:
      max_attempts: 2
      backoff_seconds: 10
      inter_row_delay_seconds: 3
      pass_threshold: 1.5
    storage_dir: .agenteval
"""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from agenteval.eval.types import JudgeConfig, RunPolicy

DEFAULT_STORAGE_DIR = ".agenteval"


@dataclass
class EvalConfig:
    judge: JudgeConfig = field(default_factory=JudgeConfig)
    policy: RunPolicy = field(default_factory=RunPolicy)
    storage_dir: str = DEFAULT_STORAGE_DIR


def _pick(cls, data: Dict[str, Any]):
    """Build a dataclass from the keys it knows about"""
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} options: {sorted(unknown)}")
    return cls(**data)


def load_config(config_path: Optional[Union[str, Path]] = None) -> EvalConfig:
    """
    Load evaluation configuration from YAML or JSON

    Args:
        config_path: Path to the config file, or None for defaults

    Returns:
        Parsed configuration
    """
    if config_path is None:
        return EvalConfig()

    path = Path(config_path)
    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix.lower() in ['.yaml', '.yml']:
            data = yaml.safe_load(f) or {}
        else:
            data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    return EvalConfig(
        judge=_pick(JudgeConfig, data.get("judge") or {}),
        policy=_pick(RunPolicy, data.get("policy") or {}),
        storage_dir=str(data.get("storage_dir", DEFAULT_STORAGE_DIR)),
    )
