"""
Error taxonomy for the evaluation engine
"""


class EvalError(Exception):
    """Base class for evaluation errors"""


class ParseError(EvalError):
    """Uploaded dataset has no usable schema or rows"""


class TaskNotFoundError(EvalError):
    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class JudgeError(EvalError):
    """Failure of a single judge call"""


class RateLimited(JudgeError):
    """The judge service asked us to slow down; safe to retry"""


class ServiceError(JudgeError):
    """Any other judge failure; not retried"""


class MalformedResponse(JudgeError):
    """Judge response is not the expected JSON object"""
