"""
Adapter for content handed over by the acquisition layer.

Accepts already-extracted text: either acquirer records in a JSON/JSONL
file, or plain ``.txt``/``.md`` files in a directory.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from dataset_pipeline.core.utils.helpers import log_message
from dataset_pipeline.models import ContentUnit, OriginType

TEXT_EXTENSIONS = {".txt", ".md"}


def _read_records(units_file: Path) -> List[Dict]:
    with open(units_file, "r", encoding="utf-8") as f:
        if units_file.suffix == ".jsonl":
            return [json.loads(line) for line in f if line.strip()]
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("units", [])
    return data


def load_units_file(units_file: str) -> List[ContentUnit]:
    """Load acquirer records ``{id, originType, originLabel, text}``."""
    units: List[ContentUnit] = []
    for idx, record in enumerate(_read_records(Path(units_file))):
        if not isinstance(record, dict) or record.get("text") is None:
            log_message(f"Skipping record {idx} in {units_file}: missing text", "warning")
            continue
        record.setdefault("id", f"unit-{idx}")
        try:
            units.append(ContentUnit.model_validate(record))
        except ValidationError as e:
            log_message(f"Skipping record {idx} in {units_file}: {e}", "warning")
    return units


def load_text_dir(input_dir: str) -> List[ContentUnit]:
    """Each text file in the directory becomes one file-origin unit."""
    directory = Path(input_dir)
    if not directory.is_dir():
        raise FileNotFoundError(f"Input directory does not exist: {directory}")

    units = []
    for path in sorted(directory.iterdir()):
        if path.suffix.lower() not in TEXT_EXTENSIONS or not path.is_file():
            continue
        units.append(ContentUnit(
            id=path.stem,
            origin_type=OriginType.FILE,
            origin_label=path.name,
            text=path.read_text(encoding="utf-8"),
        ))
    return units


def load_content_units(input_dir: Optional[str] = None, units_file: Optional[str] = None) -> List[ContentUnit]:
    units: List[ContentUnit] = []
    if input_dir:
        units.extend(load_text_dir(input_dir))
    if units_file:
        units.extend(load_units_file(units_file))
    log_message(f"Loaded {len(units)} content units")
    return units
