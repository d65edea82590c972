"""CLI for the Type Diagnosis Engine.

Provides command-line access to diagnosing answer files and inspecting the
question catalog and scoring configuration.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .catalog import QuestionCatalog
from .config import (
    DiagnosisSettings,
    find_config_file,
    get_config,
    load_config,
    load_scoring_config,
    save_default_config,
)
from .engine import DiagnosisEngine
from .errors import ValidationError
from .logging_setup import setup_logging
from .schema import DiagnoseResult

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="type-diagnosis")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True),
    help="Settings file (default: $TYPE_DIAGNOSIS_CONFIG or ./diagnosis-config.yaml)"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Log engine activity to stderr"
)
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], verbose: bool):
    """Type Diagnosis Engine.

    Scores questionnaire answers into a category x vector type and explains
    the result.
    """
    path = Path(config_path) if config_path else find_config_file()
    settings = load_config(path) if path else get_config()
    setup_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = settings


def _build_engine(settings: DiagnosisSettings) -> DiagnosisEngine:
    return DiagnosisEngine.from_settings(settings)


@main.command("diagnose")
@click.option(
    "--answers", "-a",
    required=True,
    type=click.Path(exists=True),
    help="JSON file with a list of answers or {\"answers\": [...]}"
)
@click.option(
    "--out", "-o",
    type=click.Path(),
    help="Output file for JSON results"
)
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output raw JSON instead of formatted text"
)
@click.pass_obj
def diagnose_cmd(settings: DiagnosisSettings, answers: str, out: Optional[str], json_output: bool):
    """Diagnose a complete answer set.

    Examples:
        type-diagnosis diagnose -a answers.json
        type-diagnosis diagnose -a answers.json -j -o result.json
    """
    try:
        engine = _build_engine(settings)
        payload = load_answers_file(Path(answers))
        result = engine.diagnose(payload)

        if json_output:
            output_json(result, out)
        else:
            display_result(result)
            if out:
                output_json(result, out)
                console.print(f"\n[green]Results saved to {out}[/green]")

    except ValidationError as e:
        console.print(f"[red]Invalid answers: {e}[/red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@main.command("questions")
@click.pass_obj
def questions_cmd(settings: DiagnosisSettings):
    """List the questions in the catalog."""
    try:
        engine = _build_engine(settings)

        table = Table(show_header=True, header_style="bold")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Type")
        table.add_column("Max")
        table.add_column("Prompt")
        table.add_column("Options")

        for q in engine.get_questions():
            table.add_row(
                q.id,
                q.type.value,
                str(q.selection_cap),
                q.prompt,
                ", ".join(opt.key for opt in q.options),
            )

        console.print(table)
        console.print(f"\n{len(engine.catalog)} questions")

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@main.command("max-scores")
@click.pass_obj
def max_scores_cmd(settings: DiagnosisSettings):
    """Show the maximum attainable raw score per dimension."""
    try:
        engine = _build_engine(settings)

        table = Table(show_header=True, header_style="bold")
        table.add_column("Dimension", style="cyan")
        table.add_column("Max", justify="right")

        for dimension, value in engine.max_scores.items():
            table.add_row(dimension, f"{value:g}")

        console.print(table)

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@main.command("types")
@click.pass_obj
def types_cmd(settings: DiagnosisSettings):
    """List every type id."""
    try:
        engine = _build_engine(settings)
        for type_id in engine.type_ids():
            console.print(type_id)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@main.command("describe")
@click.argument("type_id")
@click.option(
    "--name", "-n",
    help="Describe the type on behalf of this name"
)
@click.pass_obj
def describe_cmd(settings: DiagnosisSettings, type_id: str, name: Optional[str]):
    """Show the message for a type id.

    Examples:
        type-diagnosis describe challenge-speed
        type-diagnosis describe support-connect --name "Florence Nightingale"
    """
    try:
        engine = _build_engine(settings)
        message = engine.describe_type(type_id, reference_name=name)
        console.print(Panel(message, title=type_id))
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@main.command("validate")
@click.option(
    "--questions", "-q",
    type=click.Path(),
    help="Question catalog file (.json/.yaml)"
)
@click.option(
    "--scoring", "-s",
    type=click.Path(),
    help="Scoring configuration file (.yaml)"
)
def validate_cmd(questions: Optional[str], scoring: Optional[str]):
    """Validate a question catalog and/or scoring configuration.

    Examples:
        type-diagnosis validate -q questions.json
        type-diagnosis validate -q questions.json -s scoring.yaml
    """
    if not questions and not scoring:
        console.print("[yellow]Please specify --questions and/or --scoring to validate[/yellow]")
        return

    all_valid = True

    if questions:
        try:
            catalog = QuestionCatalog.from_file(questions)
            console.print(
                f"[green]✓ Catalog valid: {questions} "
                f"({len(catalog)} questions, {len(catalog.dimensions)} dimensions)[/green]"
            )
        except (ValueError, FileNotFoundError) as e:
            console.print(f"[red]✗ Catalog invalid: {questions}[/red]")
            console.print(f"  - {e}")
            all_valid = False

    if scoring:
        try:
            load_scoring_config(scoring)
            console.print(f"[green]✓ Scoring configuration valid: {scoring}[/green]")
        except (ValueError, FileNotFoundError) as e:
            console.print(f"[red]✗ Scoring configuration invalid: {scoring}[/red]")
            console.print(f"  - {e}")
            all_valid = False

    sys.exit(0 if all_valid else 1)


@main.command("init-config")
@click.option(
    "--out", "-o",
    type=click.Path(),
    default="diagnosis-config.yaml",
    help="Where to write the settings file"
)
def init_config_cmd(out: str):
    """Write a default settings file."""
    path = Path(out)
    if path.exists():
        console.print(f"[yellow]{out} already exists, not overwriting[/yellow]")
        sys.exit(1)
    save_default_config(path)
    console.print(f"[green]Settings written to {out}[/green]")


def load_answers_file(path: Path) -> list:
    """Read answers from JSON: a list, or an object with an ``answers`` list."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("answers")
    if not isinstance(data, list):
        raise ValidationError("answers must be a list of answer records")
    return data


def display_result(result: DiagnoseResult):
    """Display a diagnosis in formatted text."""
    console.print(Panel(
        f"Type: [bold cyan]{result.type_id}[/bold cyan]\n\n{result.message}",
        title="Diagnosis",
    ))

    for title, scores in (("Categories", result.scores.categories), ("Vectors", result.scores.vectors)):
        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("Profile", style="cyan")
        table.add_column("Score", justify="right")
        for key, value in sorted(scores.items(), key=lambda item: -item[1]):
            table.add_row(key, f"{value:.3f}")
        console.print(table)

    if result.scores.penalties:
        console.print("\n[bold]Penalties:[/bold]")
        for dimension, value in result.scores.penalties.items():
            if value > 0:
                console.print(f"  [yellow]•[/yellow] {dimension}: {value:.2f}")


def output_json(result: DiagnoseResult, out_path: Optional[str]):
    """Output result as JSON."""
    json_str = result.model_dump_json(indent=2, by_alias=True)

    if out_path:
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(json_str)
    else:
        click.echo(json_str)


if __name__ == "__main__":
    main()
