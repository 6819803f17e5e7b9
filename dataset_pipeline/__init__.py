"""
Q&A Dataset Generation Pipeline

Turns extracted documents and web pages into a labeled corpus of
question/answer pairs for fine-tuning.
"""

from .config import PipelineConfig
from .errors import (
    PipelineError,
    ConfigurationError,
    InferenceError,
    ResponseParseError,
    ZeroYieldError,
)
from .models import (
    ContentUnit,
    Dataset,
    FineTuningGoal,
    PairSource,
    PipelineResult,
    PipelineStage,
    ProgressEvent,
    CompiledQAPair,
    QAPair,
    RunState,
    ValidationResult,
)
from .orchestrator import PipelineOrchestrator
from .steps.generate_dataset_step import GenerateDatasetStep

# Core modules
from .core.document_processing import ContentAggregator, load_content_units
from .core.dataset import DatasetCompiler
from .core.llm import (
    InferenceClient,
    UnifiedLLMProvider,
    ThemeExtractor,
    PairGenerator,
    QAValidator,
    DistractorSynthesizer,
)
from .core.utils import log_message, setup_logging, save_json_atomic

__all__ = [
    "PipelineConfig",
    "PipelineOrchestrator",
    "GenerateDatasetStep",
    # Errors
    "PipelineError",
    "ConfigurationError",
    "InferenceError",
    "ResponseParseError",
    "ZeroYieldError",
    # Data model
    "ContentUnit",
    "Dataset",
    "FineTuningGoal",
    "PairSource",
    "PipelineResult",
    "PipelineStage",
    "ProgressEvent",
    "CompiledQAPair",
    "QAPair",
    "RunState",
    "ValidationResult",
    # Core modules
    "ContentAggregator",
    "load_content_units",
    "DatasetCompiler",
    "InferenceClient",
    "UnifiedLLMProvider",
    "ThemeExtractor",
    "PairGenerator",
    "QAValidator",
    "DistractorSynthesizer",
    "log_message",
    "setup_logging",
    "save_json_atomic",
]
