"""
Persistent stores for evaluation tasks and rubric settings

Every mutation is written through to disk, so a restart recovers finished
and partially finished tasks.
"""

import copy
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

from filelock import FileLock

from agenteval.utils.log import logger
from .types import STATUS_DONE, STATUS_PROCESSING, EvalPrompts, EvalSummary, EvalTask, EvaluationEntry, Row

TASKS_KEY = "eval_tasks"
PROMPTS_KEY = "eval_prompts"


class LocalStorage:
    """Key/value store of JSON blobs, one file per key"""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when absent or unreadable"""
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable state for {key!r} at {path}: {e}")
            return None

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def lock(self, key: str) -> FileLock:
        """Lock guarding read-modify-write of one key across processes"""
        return FileLock(str(self.directory / f".{key}.lock"))


class TaskStore:
    """
    Task list, most recent first, kept in the eval_tasks blob

    Every mutation re-reads the blob and writes it back under a file lock,
    so several processes can share one storage directory. Readers get a
    fresh snapshot of the persisted state.
    """

    def __init__(self, storage: LocalStorage):
        self.storage = storage
        self._lock = threading.RLock()
        self._file_lock = storage.lock(TASKS_KEY)
        tasks = self._load()
        logger.info(f"Found {len(tasks)} tasks in {self.storage.directory}")

    def _load(self) -> List[EvalTask]:
        raw = self.storage.get(TASKS_KEY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning(f"Persisted task list is a {type(raw).__name__}, starting empty")
            return []
        try:
            return [EvalTask.from_dict(item) for item in raw]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Persisted task list is malformed, starting empty: {e}")
            return []

    def _persist(self, tasks: List[EvalTask]) -> None:
        self.storage.set(TASKS_KEY, [task.to_dict() for task in tasks])

    @contextmanager
    def _locked(self) -> Iterator[List[EvalTask]]:
        with self._lock, self._file_lock:
            yield self._load()

    @staticmethod
    def _find(tasks: List[EvalTask], task_id: str) -> Optional[EvalTask]:
        return next((task for task in tasks if task.id == task_id), None)

    def create(self, file_name: str, rows: List[Row]) -> str:
        task = EvalTask(file_name=file_name, rows=list(rows), summary=EvalSummary(total=len(rows)))
        with self._locked() as tasks:
            tasks.insert(0, task)
            self._persist(tasks)
        logger.info(f"Created task {task.id} for {file_name} with {len(rows)} rows")
        return task.id

    def list(self) -> List[EvalTask]:
        with self._lock:
            return self._load()

    def get(self, task_id: str) -> Optional[EvalTask]:
        with self._lock:
            return self._find(self._load(), task_id)

    def delete(self, task_id: str) -> bool:
        with self._locked() as tasks:
            task = self._find(tasks, task_id)
            if task is None:
                return False
            tasks.remove(task)
            self._persist(tasks)
        logger.info(f"Deleted task {task_id}")
        return True

    def append_entry(self, task_id: str, entry: EvaluationEntry) -> bool:
        """Append one entry; False when the task no longer exists"""
        with self._locked() as tasks:
            task = self._find(tasks, task_id)
            if task is None:
                return False
            task.data.append(copy.deepcopy(entry))
            self._persist(tasks)
        return True

    def finalize(self, task_id: str, summary: EvalSummary) -> bool:
        with self._locked() as tasks:
            task = self._find(tasks, task_id)
            if task is None:
                return False
            task.summary = copy.deepcopy(summary)
            task.status = STATUS_DONE
            self._persist(tasks)
        return True

    def reset(self, task_id: str) -> bool:
        """Put a task back into processing with no results"""
        with self._locked() as tasks:
            task = self._find(tasks, task_id)
            if task is None:
                return False
            task.data = []
            task.status = STATUS_PROCESSING
            task.summary = EvalSummary(total=len(task.rows))
            self._persist(tasks)
        return True


class PromptStore:
    """Rubric settings, read once and written on change"""

    def __init__(self, storage: LocalStorage, defaults: EvalPrompts):
        self.storage = storage
        self.defaults = defaults
        self._prompts = self._load()

    def _load(self) -> EvalPrompts:
        raw = self.storage.get(PROMPTS_KEY)
        if raw is None:
            return copy.deepcopy(self.defaults)
        try:
            return EvalPrompts(**raw)
        except TypeError as e:
            logger.warning(f"Persisted rubric settings are malformed, using defaults: {e}")
            return copy.deepcopy(self.defaults)

    def load(self) -> EvalPrompts:
        return copy.deepcopy(self._prompts)

    def save(self, prompts: EvalPrompts) -> None:
        self._prompts = copy.deepcopy(prompts)
        self.storage.set(PROMPTS_KEY, prompts.to_dict())
        logger.info("Saved rubric settings")

    def update(self, dimension: str, text: str) -> EvalPrompts:
        """Replace the rubric text of one dimension"""
        prompts = self.load()
        if dimension not in prompts.to_dict():
            raise ValueError(f"Unknown rubric dimension: {dimension}")
        setattr(prompts, dimension, text)
        self.save(prompts)
        return prompts

    def reset(self) -> EvalPrompts:
        self.save(self.defaults)
        return self.load()
