"""Shared fixtures: a scripted InferenceClient so no test touches the network."""

from __future__ import annotations

import json
import re
import threading
from typing import Any, Callable, Dict, List, Optional, Union

import pytest

from dataset_pipeline.core.llm.inference import InferenceClient, InferenceOptions
from dataset_pipeline.errors import InferenceError
from dataset_pipeline.models import ContentUnit, OriginType, PairSource, QAPair

Script = Union[str, Exception, Callable[[str], str], None]

STAGE_MARKERS = [
    ("themes", "identify key themes"),
    ("synthetic", "Generate synthetic Q&A pairs"),
    ("grounded", "Every answer must be supported strictly by the content below"),
    ("validation", "Validate these Q&A pairs"),
    ("distractors", '"distractor" answer'),
]


def stage_of(prompt: str) -> str:
    for stage, marker in STAGE_MARKERS:
        if marker in prompt:
            return stage
    raise AssertionError(f"Unrecognised prompt: {prompt[:80]}")


def count_items(prompt: str, label: str = "Item") -> int:
    return len(re.findall(rf"^{label} \d+:", prompt, flags=re.MULTILINE))


def judge_all(is_valid: bool = True, accuracy: float = 0.9) -> Callable[[str], str]:
    def responder(prompt: str) -> str:
        n = count_items(prompt)
        return json.dumps([
            {"index": i + 1, "isValid": is_valid, "accuracy": accuracy, "reasoning": f"judged {i + 1}"}
            for i in range(n)
        ])
    return responder


def distract_all(prompt: str) -> str:
    n = count_items(prompt, "Pair")
    return json.dumps([
        {"index": i + 1, "original_question": f"q{i + 1}", "incorrect_answer": f"wrong {i + 1}"}
        for i in range(n)
    ])


def pairs_json(prefix: str, n: int, shape: str = "user") -> str:
    if shape == "user":
        return json.dumps([{"user": f"{prefix} question {i}", "model": f"{prefix} answer {i}"} for i in range(n)])
    return json.dumps([{"question": f"{prefix} question {i}", "answer": f"{prefix} answer {i}"} for i in range(n)])


class FakeInferenceClient(InferenceClient):
    """Routes each prompt to a per-stage script and records every call."""

    name = "fake:model"

    def __init__(self, scripts: Optional[Dict[str, Script]] = None, default: Script = None):
        super().__init__()
        self.scripts = scripts or {}
        self.default = default
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def complete(self, prompt: str, options: InferenceOptions) -> str:
        stage = stage_of(prompt)
        with self._lock:
            self.calls.append({"stage": stage, "prompt": prompt, "options": options})
        script = self.scripts.get(stage, self.default)
        if isinstance(script, Exception):
            raise script
        if callable(script):
            return script(prompt)
        if script is None:
            raise InferenceError(f"no script for {stage}", provider=self.name)
        return script

    def calls_for(self, stage: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["stage"] == stage]


@pytest.fixture
def fake_client() -> Callable[..., FakeInferenceClient]:
    def factory(**scripts: Script) -> FakeInferenceClient:
        return FakeInferenceClient(scripts)
    return factory


def make_unit(text: str, unit_id: str = "u1", origin: OriginType = OriginType.FILE, label: str = "doc.txt") -> ContentUnit:
    return ContentUnit(id=unit_id, origin_type=origin, origin_label=label, text=text)


def make_pairs(n: int, source: PairSource = PairSource.ORIGINAL) -> List[QAPair]:
    return [QAPair(question=f"Question {i}?", answer=f"Answer {i}.", source=source) for i in range(n)]
