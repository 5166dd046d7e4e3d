"""
Batch evaluation of agent interaction logs

Pipeline: parser -> runner -> evaluator -> judge, with results kept in the
task store. See framework.EvaluationFramework for the operator actions.
"""
