"""
Pipeline steps for dataset generation.
"""

from .base_step import BaseStep
from .generate_dataset_step import GenerateDatasetStep

__all__ = ["BaseStep", "GenerateDatasetStep"]
