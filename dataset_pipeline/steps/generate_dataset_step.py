"""
Dataset generation step: content units in, compiled dataset artifact out.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from dataset_pipeline.config import PipelineConfig
from dataset_pipeline.core.document_processing import load_content_units
from dataset_pipeline.core.llm import InferenceClient
from dataset_pipeline.core.utils.helpers import save_json_atomic
from dataset_pipeline.models import ContentUnit, FineTuningGoal, PipelineResult
from dataset_pipeline.orchestrator import PipelineOrchestrator, ProgressCallback
from .base_step import BaseStep


class GenerateDatasetStep(BaseStep):
    """Generate a labeled Q&A dataset from extracted content."""

    def __init__(
        self,
        config: PipelineConfig,
        generation_client: Optional[InferenceClient] = None,
        validation_client: Optional[InferenceClient] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        super().__init__(config)
        self.orchestrator = PipelineOrchestrator.from_config(
            config,
            generation_client=generation_client,
            validation_client=validation_client,
        )
        if on_progress:
            self.orchestrator.subscribe(on_progress)
        self.result: Optional[PipelineResult] = None

    def check_prerequisites(self) -> bool:
        """Check that at least one content source exists."""
        if not self.config.input_dir and not self.config.units_file:
            self.log("No input directory or units file configured", "error")
            return False
        if self.config.input_dir and not Path(self.config.input_dir).is_dir():
            self.log(f"Input directory does not exist: {self.config.input_dir}", "error")
            return False
        if self.config.units_file and not Path(self.config.units_file).is_file():
            self.log(f"Units file does not exist: {self.config.units_file}", "error")
            return False
        return True

    def load_units(self) -> List[ContentUnit]:
        return load_content_units(input_dir=self.config.input_dir, units_file=self.config.units_file)

    def extract_themes(self) -> List[str]:
        """Run aggregation and theme extraction only."""
        units = self.load_units()
        orchestrator = self.orchestrator
        corpus = orchestrator.aggregator.aggregate(
            units, orchestrator.theme_budget_chars, with_origin_labels=orchestrator.label_theme_sources
        )
        return orchestrator.theme_extractor.identify_themes(corpus, FineTuningGoal(self.config.goal)).value

    def run(self, units: Optional[List[ContentUnit]] = None) -> bool:
        """Run the generation step and write the dataset artifact."""
        self.log("Starting dataset generation step...")

        if units is None:
            if not self.check_prerequisites():
                return False
            units = self.load_units()

        self.result = self.orchestrator.run(units, self.config.goal)
        for warning in self.result.warnings:
            self.log(f"Degraded stage - {warning}", "warning")

        if self.result.cancelled:
            self.log("Dataset generation was cancelled", "warning")
            return False
        if not self.result.succeeded:
            self.log(self.result.error or "Dataset generation failed", "error")
            return False

        dataset = self.result.dataset
        artifact = {
            "metadata": {
                "generated_at": datetime.now().isoformat(),
                "goal": self.config.goal,
                "llm_provider": self.config.llm_provider,
                "llm_model": self.config.llm_model,
                "validator_provider": self.config.validator_provider,
                "validator_model": self.config.validator_model,
                "fallback_provider": self.config.fallback_provider,
                "warnings": self.result.warnings,
            },
            "dataset": dataset.model_dump(mode="json", by_alias=True),
        }
        save_json_atomic(artifact, self.config.output_file)

        self.log("=" * 50)
        self.log(f"Q&A pairs: {len(dataset.qa_pairs)} ({dataset.correct_answer_count} correct, "
                 f"{dataset.incorrect_answer_count} incorrect)")
        self.log(f"Themes: {', '.join(dataset.identified_themes) or 'none'}")
        self.log(f"Dataset saved to: {self.config.output_file}")
        return True
