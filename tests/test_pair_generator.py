"""Tests for PairGenerator in grounded and synthetic modes."""

from __future__ import annotations

import json

from dataset_pipeline.core.llm import PairGenerator
from dataset_pipeline.errors import InferenceError
from dataset_pipeline.models import FineTuningGoal, PairSource
from tests.conftest import pairs_json


class TestGroundedMode:
    def test_pairs_tagged_original(self, fake_client) -> None:
        client = fake_client(grounded=pairs_json("g", 6))
        outcome = PairGenerator(client).generate_pairs("corpus text", ["T1"], FineTuningGoal.GENERAL, grounded=True)
        assert outcome.ok
        assert len(outcome.value) == 6
        assert all(p.source == PairSource.ORIGINAL and p.is_correct for p in outcome.value)

    def test_prompt_contains_corpus_themes_and_range(self, fake_client) -> None:
        client = fake_client(grounded=pairs_json("g", 1))
        PairGenerator(client, min_pairs=5, max_pairs=8).generate_pairs(
            "THE CORPUS", ["Alpha", "Beta"], FineTuningGoal.CONVERSATIONAL, grounded=True
        )
        prompt = client.calls[0]["prompt"]
        assert "THE CORPUS" in prompt
        assert "Alpha, Beta" in prompt
        assert "5-8" in prompt
        assert "conversational" in prompt

    def test_empty_corpus_makes_no_call(self, fake_client) -> None:
        client = fake_client(grounded=pairs_json("g", 3))
        outcome = PairGenerator(client).generate_pairs("", ["T"], FineTuningGoal.GENERAL, grounded=True)
        assert outcome.value == []
        assert outcome.error is None
        assert client.calls == []

    def test_accepts_question_answer_shape(self, fake_client) -> None:
        client = fake_client(grounded=pairs_json("g", 2, shape="question"))
        outcome = PairGenerator(client).generate_pairs("c", [], FineTuningGoal.GENERAL, grounded=True)
        assert [p.question for p in outcome.value] == ["g question 0", "g question 1"]

    def test_incomplete_items_dropped_silently(self, fake_client) -> None:
        response = json.dumps([
            {"user": "Q1?", "model": "A1."},
            {"user": "Q2?"},
            {"answer": "orphan"},
            "noise",
            {"question": "Q3?", "answer": "A3."},
        ])
        client = fake_client(grounded=response)
        outcome = PairGenerator(client).generate_pairs("c", [], FineTuningGoal.GENERAL, grounded=True)
        assert outcome.ok
        assert [p.question for p in outcome.value] == ["Q1?", "Q3?"]

    def test_output_capped_at_max_pairs(self, fake_client) -> None:
        client = fake_client(grounded=pairs_json("g", 20))
        outcome = PairGenerator(client, max_pairs=8).generate_pairs("c", [], FineTuningGoal.GENERAL, grounded=True)
        assert len(outcome.value) == 8

    def test_transport_failure_yields_empty_with_error(self, fake_client) -> None:
        client = fake_client(grounded=InferenceError("503"))
        outcome = PairGenerator(client).generate_pairs("c", [], FineTuningGoal.GENERAL, grounded=True)
        assert outcome.value == []
        assert isinstance(outcome.error, InferenceError)


class TestSyntheticMode:
    def test_pairs_tagged_synthetic(self, fake_client) -> None:
        client = fake_client(synthetic=pairs_json("s", 5))
        outcome = PairGenerator(client).generate_pairs("", ["Theme"], FineTuningGoal.GENERAL, grounded=False)
        assert len(outcome.value) == 5
        assert all(p.source == PairSource.SYNTHETIC for p in outcome.value)

    def test_empty_themes_still_attempts_generation(self, fake_client) -> None:
        client = fake_client(synthetic=pairs_json("s", 5))
        outcome = PairGenerator(client).generate_pairs("", [], FineTuningGoal.GENERAL, grounded=False)
        assert len(client.calls_for("synthetic")) == 1
        assert len(outcome.value) == 5
        assert "No specific themes were identified" in client.calls[0]["prompt"]

    def test_corpus_never_sent_in_synthetic_mode(self, fake_client) -> None:
        client = fake_client(synthetic=pairs_json("s", 1))
        PairGenerator(client).generate_pairs("SECRET CORPUS", ["T"], FineTuningGoal.GENERAL, grounded=False)
        assert "SECRET CORPUS" not in client.calls[0]["prompt"]
