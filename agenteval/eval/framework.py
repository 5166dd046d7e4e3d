"""
Agent Log Evaluation Framework

Operator level actions over the evaluation core:
- upload a dataset: parse it, create a task and run it
- re-run or delete a task
- read tasks and their statistics
- view and edit the rubric for each scoring dimension
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from agenteval.utils.config import EvalConfig, load_config
from agenteval.utils.log import logger
from .errors import ParseError, TaskNotFoundError
from .evaluator import RowEvaluator
from .judge import AVAILABLE_JUDGES, DEFAULT_PROMPTS, BaseJudge
from .parser import parse, parse_file
from .runner import BatchRunner
from .stats import overview
from .store import LocalStorage, PromptStore, TaskStore
from .types import EvalPrompts, EvalTask, Row


class EvaluationFramework:
    """Main evaluation framework"""

    def __init__(self, config: EvalConfig, judge: Optional[BaseJudge] = None, show_progress: bool = True):
        self.config = config
        self.show_progress = show_progress
        self.storage = LocalStorage(config.storage_dir)
        self.tasks = TaskStore(self.storage)
        self.prompts = PromptStore(self.storage, DEFAULT_PROMPTS)
        self._judge = judge
        self._runner: Optional[BatchRunner] = None

    @property
    def runner(self) -> BatchRunner:
        # Built on first use so read-only actions need no judge credentials
        if self._runner is None:
            if self._judge is None:
                self._judge = self._initialize_judge()
            self._runner = BatchRunner(
                self.tasks,
                RowEvaluator(self._judge),
                policy=self.config.policy,
                show_progress=self.show_progress,
            )
        return self._runner

    @classmethod
    def from_config(cls, config_path: Optional[Union[str, Path]] = None, **kwargs) -> "EvaluationFramework":
        return cls(load_config(config_path), **kwargs)

    def _initialize_judge(self) -> BaseJudge:
        provider = self.config.judge.provider
        if provider not in AVAILABLE_JUDGES:
            raise ValueError(f"Unknown judge provider: {provider}")
        logger.debug(f"Initialized {provider} judge with model {self.config.judge.model}")
        return AVAILABLE_JUDGES[provider](self.config.judge)

    def create_task(self, file_name: str, text: str) -> str:
        """
        Parse a dataset and create a task for it

        Raises:
            ParseError: If the dataset has no query column or no usable rows
        """
        return self._create(file_name, parse(text))

    def _create(self, file_name: str, rows: List[Row]) -> str:
        if not rows:
            raise ParseError(f"No rows with a query found in {file_name}")
        return self.tasks.create(file_name, rows)

    async def run_task(self, task_id: str) -> bool:
        return await self.runner.run(task_id, self.prompts.load())

    async def upload(self, file_name: str, text: str) -> str:
        """Create a task from dataset text and evaluate it to completion"""
        task_id = self.create_task(file_name, text)
        await self.run_task(task_id)
        return task_id

    async def upload_file(self, path: Union[str, Path]) -> str:
        path = Path(path)
        task_id = self._create(path.name, parse_file(path))
        await self.run_task(task_id)
        return task_id

    async def rerun(self, task_id: str) -> bool:
        return await self.runner.rerun(task_id, self.prompts.load())

    def delete(self, task_id: str) -> None:
        # An active run notices on its next write and stops
        if not self.tasks.delete(task_id):
            raise TaskNotFoundError(task_id)

    def list_tasks(self) -> List[EvalTask]:
        return self.tasks.list()

    def get_task(self, task_id: str) -> EvalTask:
        task = self.tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def task_overview(self, task_id: str) -> Dict[str, Any]:
        return overview(self.get_task(task_id).data, self.config.policy.pass_threshold)

    def get_prompts(self) -> EvalPrompts:
        return self.prompts.load()

    def update_prompt(self, dimension: str, text: str) -> EvalPrompts:
        return self.prompts.update(dimension, text)

    def reset_prompts(self) -> EvalPrompts:
        return self.prompts.reset()
