from .aggregator import ContentAggregator
from .content_units import load_content_units, load_text_dir, load_units_file

__all__ = [
    'ContentAggregator',
    'load_content_units',
    'load_text_dir',
    'load_units_file',
]
