"""
Data model shared by every pipeline stage.

Attributes are snake_case; serialized artifacts use the camelCase field
names consumers of the dataset expect (``qaPairs``, ``isCorrect``...).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, List, Optional, Tuple, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


T = TypeVar("T")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OriginType(str, Enum):
    FILE = "file"
    URL = "url"


class FineTuningGoal(str, Enum):
    GENERAL = "general"
    SPECIFIC = "specific"
    CONVERSATIONAL = "conversational"
    ANALYTICAL = "analytical"


class PairSource(str, Enum):
    ORIGINAL = "original"
    SYNTHETIC = "synthetic"
    GENERATED_DISTRACTOR = "generated_distractor"


class ValidationStatus(str, Enum):
    VALIDATED = "validated"
    REJECTED = "rejected"


class ContentUnit(_CamelModel):
    """One piece of ingested source material."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(description="Stable identifier assigned by the acquirer")
    origin_type: OriginType = Field(description="Whether the text came from a file or a URL")
    origin_label: str = Field(default="", description="File name or URL")
    text: str = Field(description="Extracted plain text")

    def header(self) -> str:
        prefix = "File" if self.origin_type == OriginType.FILE else "URL"
        return f"{prefix}: {self.origin_label or self.id}"


class QAPair(_CamelModel):
    question: str = Field(description="The generated question")
    answer: str = Field(description="The answer paired with the question")
    is_correct: bool = True
    source: PairSource
    validation_status: Optional[ValidationStatus] = None
    validation_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class CompiledQAPair(QAPair):
    """A pair as stored in a Dataset; read-only."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ValidationResult(_CamelModel):
    pair_index: int = Field(ge=0, description="Absolute position of the judged pair")
    is_valid: bool
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""


class Dataset(_CamelModel):
    """Final compiled artifact; immutable once created."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    qa_pairs: Tuple[CompiledQAPair, ...]
    combined_source_text: str
    source_file_count: int
    source_url_count: int
    identified_themes: Tuple[str, ...]
    correct_answer_count: int
    incorrect_answer_count: int

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class PipelineStage(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    EXTRACTING_THEMES = "extracting_themes"
    GENERATING_GROUNDED_PAIRS = "generating_grounded_pairs"
    GENERATING_SYNTHETIC_PAIRS = "generating_synthetic_pairs"
    VALIDATING = "validating"
    SYNTHESIZING_DISTRACTORS = "synthesizing_distractors"
    COMPILING = "compiling"
    COMPLETE = "complete"
    FAILED = "failed"


class RunState(BaseModel):
    stage: PipelineStage = PipelineStage.IDLE
    current_step_label: str = ""
    progress_percent: int = Field(default=0, ge=0, le=100)
    is_running: bool = False
    last_error: Optional[str] = None


class ProgressEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage: PipelineStage
    step_label: str
    progress_percent: int


@dataclass
class StageOutcome(Generic[T]):
    """Value produced by a stage plus the non-fatal error it swallowed, if any."""

    value: T
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Parsed:
    pair: QAPair


@dataclass(frozen=True)
class Skipped:
    reason: str
    raw: Any = None


ParseOutcome = Union[Parsed, Skipped]


@dataclass
class PipelineResult:
    """What a single orchestrator run hands back to its caller."""

    state: PipelineStage
    dataset: Optional[Dataset] = None
    error: Optional[str] = None
    cancelled: bool = False
    warnings: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineStage.COMPLETE and self.dataset is not None
