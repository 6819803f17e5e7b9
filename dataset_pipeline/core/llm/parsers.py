import json
import os
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from dataset_pipeline.core.utils.helpers import log_message
from dataset_pipeline.errors import ResponseParseError
from dataset_pipeline.models import PairSource, ParseOutcome, Parsed, QAPair, Skipped

_FENCE_RE = re.compile(r"```(?:json|JSON)?")

QUESTION_KEYS = ("question", "user")
ANSWER_KEYS = ("answer", "model")


def log_failed_response(log_dir: str, error_type: str, prompt: str, response: str, model: str, context: Dict = None):
    """Append an unparseable response, with the prompt that produced it, to a dated log file."""
    try:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"failed_responses_{datetime.now().strftime('%Y%m%d')}.log")
        separator = "=" * 80
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(f"\n{separator}\n")
            f.write(f"TIMESTAMP: {datetime.now().isoformat()}\n")
            f.write(f"ERROR TYPE: {error_type}\n")
            f.write(f"MODEL: {model}\n")
            f.write(f"CONTEXT: {json.dumps(context or {}, indent=2)}\n")
            f.write(f"RESPONSE LENGTH: {len(response)} characters\n")
            f.write(f"\nPROMPT SENT:\n{prompt}\n")
            f.write(f"\nMODEL RESPONSE:\n{response}\n")
            f.write(f"{separator}\n")
        log_message(f"Failed response logged to: {log_file}")
    except OSError as e:
        log_message(f"Failed to log failed response: {e}", "warning")


class JSONArrayParser:
    """Pulls the first well-formed JSON array out of free-form model output."""

    def __init__(self, failure_log_dir: Optional[str] = None):
        self.failure_log_dir = failure_log_dir

    def parse(self, text: str, prompt: str = "", model: str = "unknown", context: Dict = None) -> List[Any]:
        try:
            return self._extract(text or "")
        except ResponseParseError as e:
            log_message(f"JSON parsing failed: {e}", "warning")
            if self.failure_log_dir:
                log_failed_response(self.failure_log_dir, str(e), prompt, str(text), model, context)
            raise

    def _extract(self, text: str) -> List[Any]:
        text = _FENCE_RE.sub("", text).strip()

        start_idx = text.find('[')
        end_idx = text.rfind(']')
        if start_idx == -1 or end_idx <= start_idx:
            raise ResponseParseError("No JSON array found in response")

        candidate = self._fix_json_escaping(text[start_idx:end_idx + 1])
        try:
            data = json.loads(candidate)
            if isinstance(data, list):
                return data
        except json.JSONDecodeError:
            pass

        # Surrounding text may itself contain brackets; take the first array that decodes
        decoder = json.JSONDecoder()
        for match in re.finditer(r"\[", text):
            try:
                data, _ = decoder.raw_decode(text, match.start())
            except json.JSONDecodeError:
                continue
            if isinstance(data, list):
                return data
        raise ResponseParseError("No well-formed JSON array found in response")

    def _fix_json_escaping(self, json_text: str) -> str:
        """Fix common JSON escaping issues in LLM responses."""
        try:
            json.loads(json_text)
            return json_text
        except json.JSONDecodeError:
            fixed_text = json_text.replace("\\'", "'")
            fixed_text = re.sub(r'\}\s*\{', '},{', fixed_text)
            try:
                json.loads(fixed_text)
                return fixed_text
            except json.JSONDecodeError:
                return json_text


def _first_text(item: Dict, keys) -> str:
    for key in keys:
        value = item.get(key)
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            value = str(value).strip()
            if value:
                return value
    return ""


def normalize_pair(item: Any, source: PairSource) -> ParseOutcome:
    """Map either {question, answer} or {user, model} onto a canonical QAPair."""
    if not isinstance(item, dict):
        return Skipped("item is not an object", item)
    question = _first_text(item, QUESTION_KEYS)
    answer = _first_text(item, ANSWER_KEYS)
    if not question:
        return Skipped("missing question", item)
    if not answer:
        return Skipped("missing answer", item)
    return Parsed(QAPair(question=question, answer=answer, is_correct=True, source=source))
