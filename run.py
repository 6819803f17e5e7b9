#!/usr/bin/env python3
"""
Q&A Dataset Generator
Turns extracted documents and web pages into a fine-tuning dataset.
"""

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from dataset_pipeline.config import PipelineConfig
from dataset_pipeline.core.llm import UnifiedLLMProvider
from dataset_pipeline.core.utils.helpers import setup_logging
from dataset_pipeline.errors import ConfigurationError
from dataset_pipeline.models import FineTuningGoal, ProgressEvent
from dataset_pipeline.steps.generate_dataset_step import GenerateDatasetStep

PROJECT_ROOT = Path(__file__).parent.absolute()

app = typer.Typer(
    name="run",
    help="Q&A Dataset Generator - Build fine-tuning datasets from documents and web pages",
    add_completion=False
)

# Load environment variables
load_dotenv(PROJECT_ROOT / "config.env")


def _load_config(
    input_dir: Optional[str],
    units_file: Optional[str],
    goal: Optional[FineTuningGoal],
    provider: Optional[str],
    model: Optional[str],
    verbose: Optional[bool],
) -> PipelineConfig:
    # Load config from .env file first, then apply command-line overrides
    config = PipelineConfig.from_env(PROJECT_ROOT)
    if input_dir is not None: config.input_dir = input_dir
    if units_file is not None: config.units_file = units_file
    if goal is not None: config.goal = goal.value
    if provider is not None: config.llm_provider = provider
    if model is not None: config.llm_model = model
    if verbose is not None: config.verbose = verbose
    setup_logging(config.verbose)
    return config


def _echo_progress(event: ProgressEvent):
    if event.step_label:
        typer.echo(f"[{event.progress_percent:3d}%] {event.step_label}")


@app.command("generate")
def generate_dataset(
    input_dir: Optional[str] = typer.Option(None, "--input-dir", "-i", help="Directory of extracted .txt/.md files. Overrides .env setting."),
    units_file: Optional[str] = typer.Option(None, "--units-file", help="JSON/JSONL file of acquired content units. Overrides .env setting."),
    output_file: Optional[str] = typer.Option(None, "--output", "-o", help="Path of the dataset JSON artifact. Overrides .env setting."),
    goal: Optional[FineTuningGoal] = typer.Option(None, "--goal", help="Fine-tuning goal. Overrides .env setting."),
    provider: Optional[str] = typer.Option(None, "--provider", help="Generation provider (gemini, openrouter, openai, claude, local). Overrides .env setting."),
    model: Optional[str] = typer.Option(None, "--model", help="Generation model name. Overrides .env setting."),
    validator_provider: Optional[str] = typer.Option(None, "--validator-provider", help="Validation provider. Overrides .env setting."),
    validator_model: Optional[str] = typer.Option(None, "--validator-model", help="Validation model name. Overrides .env setting."),
    fallback_provider: Optional[str] = typer.Option(None, "--fallback-provider", help="Provider retried when a generation call fails. Overrides .env setting."),
    verbose: Optional[bool] = typer.Option(None, "--verbose", "-v", help="Enable verbose output. Overrides .env setting.")
):
    """
    Generate a Q&A dataset: themes, grounded and synthetic pairs,
    batched validation, distractors, and final compilation.
    """
    config = _load_config(input_dir, units_file, goal, provider, model, verbose)
    if output_file is not None: config.output_file = output_file
    if validator_provider is not None: config.validator_provider = validator_provider
    if validator_model is not None: config.validator_model = validator_model
    if fallback_provider is not None: config.fallback_provider = fallback_provider

    try:
        step = GenerateDatasetStep(config, on_progress=_echo_progress)
    except ConfigurationError as e:
        typer.echo(f"❌ Invalid configuration: {e}", err=True)
        raise typer.Exit(1)

    if step.run():
        typer.echo(f"✅ Dataset generated: {config.output_file}")
    else:
        message = step.result.error if step.result and step.result.error else "Dataset generation failed!"
        typer.echo(f"❌ {message}", err=True)
        raise typer.Exit(1)


@app.command("themes")
def identify_themes(
    input_dir: Optional[str] = typer.Option(None, "--input-dir", "-i", help="Directory of extracted .txt/.md files. Overrides .env setting."),
    units_file: Optional[str] = typer.Option(None, "--units-file", help="JSON/JSONL file of acquired content units. Overrides .env setting."),
    goal: Optional[FineTuningGoal] = typer.Option(None, "--goal", help="Fine-tuning goal. Overrides .env setting."),
    provider: Optional[str] = typer.Option(None, "--provider", help="Generation provider. Overrides .env setting."),
    model: Optional[str] = typer.Option(None, "--model", help="Generation model name. Overrides .env setting."),
    verbose: Optional[bool] = typer.Option(None, "--verbose", "-v", help="Enable verbose output. Overrides .env setting.")
):
    """
    Identify the themes of the content without generating a dataset.
    """
    config = _load_config(input_dir, units_file, goal, provider, model, verbose)
    try:
        step = GenerateDatasetStep(config)
    except ConfigurationError as e:
        typer.echo(f"❌ Invalid configuration: {e}", err=True)
        raise typer.Exit(1)
    if not step.check_prerequisites():
        raise typer.Exit(1)

    themes = step.extract_themes()
    if not themes:
        typer.echo("No themes identified.")
        return
    for theme in themes:
        typer.echo(f"- {theme}")


@app.command("providers")
def list_providers():
    """
    List supported providers and their known models.
    """
    for provider in UnifiedLLMProvider.get_available_providers():
        models = ", ".join(UnifiedLLMProvider.get_provider_models(provider))
        typer.echo(f"{provider}: {models}")


if __name__ == "__main__":
    app()
