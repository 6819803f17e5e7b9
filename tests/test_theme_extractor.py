"""Tests for ThemeExtractor."""

from __future__ import annotations

import json

from dataset_pipeline.core.llm import ThemeExtractor
from dataset_pipeline.errors import InferenceError, ResponseParseError
from dataset_pipeline.models import FineTuningGoal


class TestIdentifyThemes:
    def test_parses_fenced_array(self, fake_client) -> None:
        client = fake_client(themes='```json\n["Networking", "Storage"]\n```')
        outcome = ThemeExtractor(client).identify_themes("some corpus", FineTuningGoal.SPECIFIC)
        assert outcome.ok
        assert outcome.value == ["Networking", "Storage"]

    def test_prompt_embeds_corpus_and_goal(self, fake_client) -> None:
        client = fake_client(themes='["x"]')
        corpus = "y" * 50
        ThemeExtractor(client).identify_themes(corpus, FineTuningGoal.ANALYTICAL)
        prompt = client.calls[0]["prompt"]
        assert corpus in prompt
        assert "analytical fine-tuning" in prompt

    def test_deduplicates_and_drops_non_strings(self, fake_client) -> None:
        client = fake_client(themes=json.dumps(["Security", " security ", 3, {"name": "Cost"}, ""]))
        outcome = ThemeExtractor(client).identify_themes("c", FineTuningGoal.GENERAL)
        assert outcome.value == ["Security", "Cost"]

    def test_transport_error_is_non_fatal(self, fake_client) -> None:
        client = fake_client(themes=InferenceError("timeout"))
        outcome = ThemeExtractor(client).identify_themes("c", FineTuningGoal.GENERAL)
        assert outcome.value == []
        assert isinstance(outcome.error, InferenceError)

    def test_parse_error_is_non_fatal(self, fake_client) -> None:
        client = fake_client(themes="Themes: security and cost.")
        outcome = ThemeExtractor(client).identify_themes("c", FineTuningGoal.GENERAL)
        assert outcome.value == []
        assert isinstance(outcome.error, ResponseParseError)
