"""
CLI interface for the Agent Log Evaluation Framework
"""

import asyncio
from pathlib import Path
from typing import Optional

import click
import yaml

from agenteval.utils.log import logger
from agenteval.eval.errors import EvalError
from agenteval.eval.framework import EvaluationFramework
from agenteval.eval.types import EvalTask

DIMENSION_LABELS = {
    "orchestration_eval": "Orchestration Accuracy",
    "tool_eval": "Tool Output Quality",
    "summary_eval": "Summarization Gain",
}


def _print_task_summary(task: EvalTask):
    print("\n" + "=" * 60)
    print("EVALUATION SUMMARY")
    print("=" * 60)
    print(f"Task: {task.id} ({task.file_name})")
    print(f"Status: {task.status}")
    print(f"Total queries: {task.summary.total}")
    print(f"Average score: {task.summary.avg_score} / 2.0")
    print(f"Pass rate: {task.summary.pass_rate}%")
    print("=" * 60)


@click.group()
@click.option(
    '--config', '-c',
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help='Path to evaluation configuration file (YAML or JSON)'
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path]):
    """Evaluate agent interaction logs with an LLM judge"""
    ctx.obj = {"config": config}


def _framework(ctx: click.Context) -> EvaluationFramework:
    if "framework" not in ctx.obj:
        try:
            ctx.obj["framework"] = EvaluationFramework.from_config(ctx.obj["config"])
        except (ValueError, yaml.YAMLError) as e:
            raise click.ClickException(f"Invalid configuration: {e}")
    return ctx.obj["framework"]


@cli.command()
@click.argument('dataset', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def run(ctx: click.Context, dataset: Path):
    """Upload a CSV dataset and evaluate every row"""
    logger.info(f"Starting evaluation of {dataset}")
    framework = _framework(ctx)
    try:
        task_id = asyncio.run(framework.upload_file(dataset))
    except Exception as e:
        logger.error(f"Evaluation failed: {e}")
        raise click.ClickException(f"Evaluation failed: {e}")
    _print_task_summary(framework.get_task(task_id))


@cli.command()
@click.pass_context
def tasks(ctx: click.Context):
    """List evaluation tasks, most recent first"""
    all_tasks = _framework(ctx).list_tasks()
    if not all_tasks:
        print("No evaluation tasks yet")
        return
    for task in all_tasks:
        print(
            f"{task.id}  {task.status:<10}  {task.file_name}  "
            f"{len(task.data)}/{task.summary.total} rows  "
            f"avg {task.summary.avg_score}  pass {task.summary.pass_rate}%  {task.timestamp}"
        )


@cli.command()
@click.argument('task_id')
@click.option('--entries/--no-entries', default=False, help='Also print every entry')
@click.pass_context
def show(ctx: click.Context, task_id: str, entries: bool):
    """Show statistics of one task"""
    framework = _framework(ctx)
    try:
        task = framework.get_task(task_id)
        stats = framework.task_overview(task_id)
    except EvalError as e:
        raise click.ClickException(str(e))

    _print_task_summary(task)
    print(f"Critical flaws (<0.7): {stats['critical']}")
    print(f"Errors: {stats['errors']}")
    print("\nCapabilities:")
    for name, label in DIMENSION_LABELS.items():
        print(f"  {label}: {stats['dimensions'][name]:.2f}")
    print("\nCategory Analysis:")
    for category, info in stats["categories"].items():
        print(
            f"  {category}: samples={info['count']} sub_score={info['sub_score']}/2.0 "
            f"EXC {info['excellent_pct']:.0f}% ACC {info['acceptable_pct']:.0f}% FAIL {info['fail_pct']:.0f}%"
        )

    if entries:
        print()
        for entry in task.data:
            scores = "/".join(str(step.score) for step in entry.steps)
            print(f"[{entry.category}] {scores}  {entry.user_query}")
            for name, label in DIMENSION_LABELS.items():
                print(f"    {label}: {getattr(entry, name).reason}")


@cli.command()
@click.argument('task_id')
@click.pass_context
def rerun(ctx: click.Context, task_id: str):
    """Clear a task's results and evaluate it again"""
    framework = _framework(ctx)
    try:
        asyncio.run(framework.rerun(task_id))
    except EvalError as e:
        raise click.ClickException(str(e))
    _print_task_summary(framework.get_task(task_id))


@cli.command()
@click.argument('task_id')
@click.pass_context
def delete(ctx: click.Context, task_id: str):
    """Delete a task and its results"""
    try:
        _framework(ctx).delete(task_id)
    except EvalError as e:
        raise click.ClickException(str(e))
    print(f"Deleted task {task_id}")


@cli.group()
def prompts():
    """View or edit the scoring rubric"""


@prompts.command('show')
@click.pass_context
def prompts_show(ctx: click.Context):
    current = _framework(ctx).get_prompts()
    for dimension, text in current.to_dict().items():
        print(f"--- {dimension} ---")
        print(text)
        print()


@prompts.command('set')
@click.argument('dimension', type=click.Choice(['orchestration', 'tool', 'summary']))
@click.argument('text', required=False)
@click.option('--file', '-f', 'text_file', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='Read the rubric text from a file')
@click.pass_context
def prompts_set(ctx: click.Context, dimension: str, text: Optional[str], text_file: Optional[Path]):
    """Replace the rubric of one dimension"""
    if text_file is not None:
        text = text_file.read_text(encoding='utf-8')
    if not text:
        raise click.UsageError("Provide the rubric TEXT or --file")
    _framework(ctx).update_prompt(dimension, text)
    print(f"Updated {dimension} rubric")


@prompts.command('reset')
@click.pass_context
def prompts_reset(ctx: click.Context):
    """Restore the default rubric"""
    _framework(ctx).reset_prompts()
    print("Rubric reset to defaults")


def main():
    """Main entry point for CLI"""
    cli()


if __name__ == '__main__':
    main()
