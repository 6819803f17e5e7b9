from typing import List, Sequence

from dataset_pipeline.core.utils.helpers import log_message
from dataset_pipeline.models import ContentUnit


class ContentAggregator:
    """Merges content units into one corpus string bounded by a character budget.

    Units are joined in input order with ``separator``. When the running
    length would pass ``max_chars`` the concatenation is cut at exactly
    ``max_chars`` characters and no further units are considered, so the
    result always equals a prefix of the unbounded concatenation.
    """

    def __init__(self, separator: str = "\n\n"):
        self.separator = separator

    def _unit_texts(self, units: Sequence[ContentUnit], with_origin_labels: bool) -> List[str]:
        texts = []
        for unit in units:
            if not unit.text:
                continue
            texts.append(f"{unit.header()}\n{unit.text}" if with_origin_labels else unit.text)
        return texts

    def combine(self, units: Sequence[ContentUnit], with_origin_labels: bool = False) -> str:
        """Unbounded concatenation of every unit."""
        return self.separator.join(self._unit_texts(units, with_origin_labels))

    def aggregate(self, units: Sequence[ContentUnit], max_chars: int, with_origin_labels: bool = False) -> str:
        if max_chars < 0:
            raise ValueError(f"max_chars must not be negative, got {max_chars}")

        parts: List[str] = []
        length = 0
        total_units = 0
        for text in self._unit_texts(units, with_origin_labels):
            piece = text if not parts else self.separator + text
            total_units += 1
            if length + len(piece) > max_chars:
                parts.append(piece[:max_chars - length])
                length = max_chars
                log_message(
                    f"Corpus truncated to {max_chars} chars at unit {total_units}/{len(units)}",
                    "warning",
                )
                break
            parts.append(piece)
            length += len(piece)

        return "".join(parts)
