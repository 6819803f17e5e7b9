"""
Pipeline orchestrator: sequences the stages of one dataset generation run.

Stages run strictly one after another. Every stage failure except the
zero-yield condition degrades the output and the run moves on; only when
both generation stages come back empty does the run end in FAILED.

``reset()`` may be called from another thread while ``run()`` is blocked
on a backend call. The run notices at its next sequence point and throws
its results away instead of applying them.
"""

import threading
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from dataset_pipeline.config import PipelineConfig
from dataset_pipeline.core.dataset import DatasetCompiler
from dataset_pipeline.core.document_processing import ContentAggregator
from dataset_pipeline.core.llm import (
    DistractorSynthesizer,
    InferenceClient,
    JSONArrayParser,
    PairGenerator,
    QAValidator,
    ThemeExtractor,
    build_inference_client,
)
from dataset_pipeline.core.utils.helpers import log_message
from dataset_pipeline.errors import ZeroYieldError
from dataset_pipeline.models import (
    ContentUnit,
    Dataset,
    FineTuningGoal,
    OriginType,
    PipelineResult,
    PipelineStage,
    ProgressEvent,
    QAPair,
    RunState,
    StageOutcome,
    ValidationStatus,
)

ProgressCallback = Callable[[ProgressEvent], None]

STAGE_SCHEDULE: Dict[PipelineStage, Tuple[str, int]] = {
    PipelineStage.INITIALIZING: ("Initializing...", 10),
    PipelineStage.EXTRACTING_THEMES: ("Processing content and identifying themes...", 25),
    PipelineStage.GENERATING_GROUNDED_PAIRS: ("Generating Q&A pairs from content...", 40),
    PipelineStage.GENERATING_SYNTHETIC_PAIRS: ("Generating synthetic Q&A pairs...", 60),
    PipelineStage.VALIDATING: ("Validating Q&A pairs...", 75),
    PipelineStage.SYNTHESIZING_DISTRACTORS: ("Generating incorrect answers...", 85),
    PipelineStage.COMPILING: ("Compiling final dataset...", 95),
    PipelineStage.COMPLETE: ("Dataset generation complete!", 100),
}

ZERO_YIELD_MESSAGE = (
    "No Q&A pairs could be generated from the supplied content or themes. "
    "Check the source material and the model backend, then try again."
)


class _RunCancelled(Exception):
    """Internal signal: a reset happened while the run was in flight."""


class PipelineOrchestrator:
    """Runs aggregation, themes, generation, validation, distractors and compilation in order."""

    def __init__(
        self,
        theme_extractor: ThemeExtractor,
        pair_generator: PairGenerator,
        validator: QAValidator,
        distractor_synthesizer: DistractorSynthesizer,
        aggregator: Optional[ContentAggregator] = None,
        compiler: Optional[DatasetCompiler] = None,
        theme_budget_chars: int = 12000,
        generation_budget_chars: int = 12000,
        label_theme_sources: bool = False,
    ):
        self.theme_extractor = theme_extractor
        self.pair_generator = pair_generator
        self.validator = validator
        self.distractor_synthesizer = distractor_synthesizer
        self.aggregator = aggregator or ContentAggregator()
        self.compiler = compiler or DatasetCompiler()
        self.theme_budget_chars = theme_budget_chars
        self.generation_budget_chars = generation_budget_chars
        self.label_theme_sources = label_theme_sources

        self._lock = threading.Lock()
        self._generation = 0
        self._state = RunState()
        self._observers: List[ProgressCallback] = []
        self.last_dataset: Optional[Dataset] = None

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        generation_client: Optional[InferenceClient] = None,
        validation_client: Optional[InferenceClient] = None,
    ) -> "PipelineOrchestrator":
        config.validate()
        generation_client = generation_client or build_inference_client(config, "generation")
        validation_client = validation_client or build_inference_client(config, "validation")
        parser = JSONArrayParser(failure_log_dir=config.failed_response_log_dir)
        return cls(
            theme_extractor=ThemeExtractor(generation_client, parser=parser),
            pair_generator=PairGenerator(
                generation_client,
                min_pairs=config.min_pairs_per_call,
                max_pairs=config.max_pairs_per_call,
                parser=parser,
            ),
            validator=QAValidator(
                validation_client,
                batch_size=config.validation_batch_size,
                max_concurrency=config.validation_concurrency,
                parser=parser,
            ),
            distractor_synthesizer=DistractorSynthesizer(generation_client, cap=config.distractor_cap, parser=parser),
            theme_budget_chars=config.theme_budget_chars,
            generation_budget_chars=config.generation_budget_chars,
            label_theme_sources=config.label_theme_sources,
        )

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register a progress observer; returns a function that unregisters it."""
        with self._lock:
            self._observers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)
        return unsubscribe

    def snapshot(self) -> RunState:
        with self._lock:
            return self._state.model_copy()

    @property
    def stage(self) -> PipelineStage:
        with self._lock:
            return self._state.stage

    def _notify(self, event: ProgressEvent, observers: Sequence[ProgressCallback]):
        for callback in observers:
            try:
                callback(event)
            except Exception as e:
                log_message(f"Progress observer raised {type(e).__name__}: {e}", "warning")

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _transition(self, generation: int, stage: PipelineStage):
        label, percent = STAGE_SCHEDULE[stage]
        with self._lock:
            if generation != self._generation:
                raise _RunCancelled()
            self._state.stage = stage
            self._state.current_step_label = label
            self._state.progress_percent = max(self._state.progress_percent, percent)
            if stage == PipelineStage.COMPLETE:
                self._state.is_running = False
            event = ProgressEvent(stage=stage, step_label=label, progress_percent=self._state.progress_percent)
            observers = list(self._observers)
        log_message(f"[{event.progress_percent:3d}%] {label}")
        self._notify(event, observers)

    def _ensure_current(self, generation: int):
        with self._lock:
            if generation != self._generation:
                raise _RunCancelled()

    def reset(self):
        """Return to IDLE, clearing run state; any in-flight run's results are discarded."""
        with self._lock:
            self._generation += 1
            self._state = RunState()
            self.last_dataset = None
            event = ProgressEvent(stage=PipelineStage.IDLE, step_label="", progress_percent=0)
            observers = list(self._observers)
        self._notify(event, observers)

    cancel = reset

    def _fail(self, generation: int, error: ZeroYieldError):
        with self._lock:
            if generation != self._generation:
                raise _RunCancelled()
            self._state.stage = PipelineStage.FAILED
            self._state.current_step_label = str(error)
            self._state.is_running = False
            self._state.last_error = str(error)
            event = ProgressEvent(stage=PipelineStage.FAILED, step_label=str(error), progress_percent=self._state.progress_percent)
            observers = list(self._observers)
        log_message(f"Dataset generation failed: {error}", "error")
        self._notify(event, observers)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    @staticmethod
    def _record(outcome: StageOutcome, stage: PipelineStage, warnings: List[str]):
        if outcome.error is not None:
            warnings.append(f"{stage.value}: {outcome.error}")

    def run(self, units: Sequence[ContentUnit], goal: Union[FineTuningGoal, str] = FineTuningGoal.GENERAL) -> PipelineResult:
        """Execute one full run. Assumes callers never start two runs at once."""
        goal = FineTuningGoal(goal)
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._state = RunState(is_running=True)

        try:
            return self._run(generation, list(units), goal)
        except _RunCancelled:
            log_message("Run was reset before completion; discarding its results", "warning")
            return PipelineResult(state=PipelineStage.IDLE, cancelled=True)
        except Exception as e:
            log_message(f"Run aborted by unexpected {type(e).__name__}: {e}", "error")
            with self._lock:
                if generation == self._generation:
                    self._state.last_error = str(e)
            raise
        finally:
            with self._lock:
                if generation == self._generation:
                    self._state.is_running = False

    def _run(self, generation: int, units: List[ContentUnit], goal: FineTuningGoal) -> PipelineResult:
        warnings: List[str] = []

        self._transition(generation, PipelineStage.INITIALIZING)
        file_count = sum(1 for unit in units if unit.origin_type == OriginType.FILE)
        url_count = sum(1 for unit in units if unit.origin_type == OriginType.URL)
        log_message(f"Starting run: {file_count} files, {url_count} URLs, goal={goal.value}")

        self._transition(generation, PipelineStage.EXTRACTING_THEMES)
        theme_corpus = self.aggregator.aggregate(units, self.theme_budget_chars, with_origin_labels=self.label_theme_sources)
        themes_outcome = self.theme_extractor.identify_themes(theme_corpus, goal)
        self._record(themes_outcome, PipelineStage.EXTRACTING_THEMES, warnings)
        themes = themes_outcome.value

        self._transition(generation, PipelineStage.GENERATING_GROUNDED_PAIRS)
        generation_corpus = self.aggregator.aggregate(units, self.generation_budget_chars)
        grounded_outcome = self.pair_generator.generate_pairs(generation_corpus, themes, goal, grounded=True)
        self._record(grounded_outcome, PipelineStage.GENERATING_GROUNDED_PAIRS, warnings)
        grounded: List[QAPair] = grounded_outcome.value

        # Synthetic generation always runs, supplementing grounded pairs
        self._transition(generation, PipelineStage.GENERATING_SYNTHETIC_PAIRS)
        synthetic_outcome = self.pair_generator.generate_pairs("", themes, goal, grounded=False)
        self._record(synthetic_outcome, PipelineStage.GENERATING_SYNTHETIC_PAIRS, warnings)
        synthetic: List[QAPair] = synthetic_outcome.value

        self._ensure_current(generation)
        if not grounded and not synthetic:
            error = ZeroYieldError(ZERO_YIELD_MESSAGE)
            self._fail(generation, error)
            return PipelineResult(state=PipelineStage.FAILED, error=str(error), warnings=warnings)

        self._transition(generation, PipelineStage.VALIDATING)
        all_pairs = grounded + synthetic
        validation_outcome = self.validator.validate(all_pairs)
        self._record(validation_outcome, PipelineStage.VALIDATING, warnings)
        self._ensure_current(generation)
        self.validator.annotate(all_pairs, validation_outcome.value)

        self._transition(generation, PipelineStage.SYNTHESIZING_DISTRACTORS)
        candidates = [
            pair for pair in all_pairs
            if pair.is_correct and pair.validation_status != ValidationStatus.REJECTED
        ]
        distractor_outcome = self.distractor_synthesizer.synthesize_distractors(candidates)
        self._record(distractor_outcome, PipelineStage.SYNTHESIZING_DISTRACTORS, warnings)

        self._transition(generation, PipelineStage.COMPILING)
        dataset = self.compiler.compile(
            grounded,
            synthetic,
            distractor_outcome.value,
            themes,
            self.aggregator.combine(units),
            file_count,
            url_count,
        )

        with self._lock:
            if generation != self._generation:
                raise _RunCancelled()
            self.last_dataset = dataset
        self._transition(generation, PipelineStage.COMPLETE)

        log_message(
            f"Dataset compiled: {len(dataset.qa_pairs)} pairs "
            f"({dataset.correct_answer_count} correct, {dataset.incorrect_answer_count} distractors), "
            f"{len(dataset.identified_themes)} themes"
        )
        return PipelineResult(state=PipelineStage.COMPLETE, dataset=dataset, warnings=warnings)
