"""
Configuration management for the dataset generation pipeline.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from dataset_pipeline.errors import ConfigurationError


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_optional(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    return value if value else default


@dataclass
class PipelineConfig:
    """Central configuration for a dataset generation run."""

    # Inputs and outputs
    input_dir: Optional[str] = None
    units_file: Optional[str] = None
    output_file: str = "_data/dataset/dataset.json"
    goal: str = "general"

    # Generation backend
    llm_provider: str = "gemini"
    llm_model: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 2000

    # Judgment backend
    validator_provider: str = "openrouter"
    validator_model: Optional[str] = "anthropic/claude-3-haiku"
    judge_temperature: float = 0.1

    # Optional second backend tried when the primary generation call fails
    fallback_provider: Optional[str] = None
    fallback_model: Optional[str] = None

    # Context budgets (characters)
    theme_budget_chars: int = 12000
    generation_budget_chars: int = 12000
    label_theme_sources: bool = False

    # Stage sizing
    min_pairs_per_call: int = 5
    max_pairs_per_call: int = 8
    validation_batch_size: int = 5
    validation_concurrency: int = 3
    distractor_cap: int = 5

    # General settings
    failed_response_log_dir: Optional[str] = None
    verbose: bool = False

    def validate(self) -> "PipelineConfig":
        """Raise ConfigurationError if any value is unusable; return self."""
        for name in ("theme_budget_chars", "generation_budget_chars", "validation_batch_size",
                     "validation_concurrency", "max_pairs_per_call", "max_tokens"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")
        if self.min_pairs_per_call < 1 or self.min_pairs_per_call > self.max_pairs_per_call:
            raise ConfigurationError(
                f"min_pairs_per_call ({self.min_pairs_per_call}) must be between 1 and "
                f"max_pairs_per_call ({self.max_pairs_per_call})"
            )
        if self.distractor_cap < 0:
            raise ConfigurationError(f"distractor_cap must not be negative, got {self.distractor_cap}")
        return self

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "PipelineConfig":
        """Create configuration from a YAML file; unknown keys are ignored."""
        with open(yaml_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in yaml_data.items() if k in known})

    @classmethod
    def from_env(cls, project_root: Optional[Path] = None) -> "PipelineConfig":
        """Create configuration from environment variables with YAML override support."""
        project_root = project_root or Path(__file__).parent.parent

        config_file = project_root / "config.env"
        if config_file.exists():
            load_dotenv(config_file)

        # A YAML file wins over defaults; env vars still override it per field
        yaml_files = [
            project_root / "config.yaml",
            project_root / "config.yml",
            project_root / "pipeline.yaml",
            project_root / "pipeline.yml",
        ]
        base = cls()
        for yaml_file in yaml_files:
            if yaml_file.exists():
                base = cls.from_yaml(str(yaml_file))
                break

        return cls(
            input_dir=_env_optional("PIPELINE_INPUT_DIR", base.input_dir),
            units_file=_env_optional("PIPELINE_UNITS_FILE", base.units_file),
            output_file=os.getenv("PIPELINE_OUTPUT_FILE", base.output_file),
            goal=os.getenv("PIPELINE_GOAL", base.goal),

            llm_provider=os.getenv("PIPELINE_LLM_PROVIDER", base.llm_provider),
            llm_model=_env_optional("PIPELINE_LLM_MODEL", base.llm_model),
            temperature=float(os.getenv("PIPELINE_TEMPERATURE", str(base.temperature))),
            max_tokens=int(os.getenv("PIPELINE_MAX_TOKENS", str(base.max_tokens))),

            validator_provider=os.getenv("PIPELINE_VALIDATOR_PROVIDER", base.validator_provider),
            validator_model=_env_optional("PIPELINE_VALIDATOR_MODEL", base.validator_model),
            judge_temperature=float(os.getenv("PIPELINE_JUDGE_TEMPERATURE", str(base.judge_temperature))),

            fallback_provider=_env_optional("PIPELINE_FALLBACK_PROVIDER", base.fallback_provider),
            fallback_model=_env_optional("PIPELINE_FALLBACK_MODEL", base.fallback_model),

            theme_budget_chars=int(os.getenv("PIPELINE_THEME_BUDGET_CHARS", str(base.theme_budget_chars))),
            generation_budget_chars=int(os.getenv("PIPELINE_GENERATION_BUDGET_CHARS", str(base.generation_budget_chars))),
            label_theme_sources=_env_bool("PIPELINE_LABEL_THEME_SOURCES", str(base.label_theme_sources)),

            min_pairs_per_call=int(os.getenv("PIPELINE_MIN_PAIRS_PER_CALL", str(base.min_pairs_per_call))),
            max_pairs_per_call=int(os.getenv("PIPELINE_MAX_PAIRS_PER_CALL", str(base.max_pairs_per_call))),
            validation_batch_size=int(os.getenv("PIPELINE_VALIDATION_BATCH_SIZE", str(base.validation_batch_size))),
            validation_concurrency=int(os.getenv("PIPELINE_VALIDATION_CONCURRENCY", str(base.validation_concurrency))),
            distractor_cap=int(os.getenv("PIPELINE_DISTRACTOR_CAP", str(base.distractor_cap))),

            failed_response_log_dir=_env_optional("PIPELINE_FAILED_RESPONSE_LOG_DIR", base.failed_response_log_dir),
            verbose=_env_bool("PIPELINE_VERBOSE", str(base.verbose)),
        )
