"""
Base class for pipeline steps.
"""

from abc import ABC, abstractmethod

from dataset_pipeline.config import PipelineConfig
from dataset_pipeline.core.utils.helpers import log_message


class BaseStep(ABC):
    """Base class for all pipeline steps."""

    def __init__(self, config: PipelineConfig):
        self.config = config

    def log(self, message: str, level: str = "info"):
        """Log a message; info-level chatter only in verbose mode."""
        if self.config.verbose or level in ("warning", "error"):
            log_message(message, level)

    @abstractmethod
    def run(self, **kwargs) -> bool:
        """Run the pipeline step. Returns True if successful."""
        pass

    def check_prerequisites(self) -> bool:
        """Check if prerequisites for this step are met."""
        return True
