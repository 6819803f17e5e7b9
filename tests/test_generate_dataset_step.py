"""Tests for GenerateDatasetStep: units in, dataset artifact on disk."""

import json

import pytest

from dataset_pipeline.config import PipelineConfig
from dataset_pipeline.errors import ConfigurationError, InferenceError
from dataset_pipeline.steps import GenerateDatasetStep
from tests.conftest import distract_all, judge_all, make_unit, pairs_json


@pytest.fixture
def client(fake_client):
    return fake_client(
        themes=json.dumps(["Energy"]),
        grounded=pairs_json("g", 2),
        synthetic=pairs_json("s", 1),
        validation=judge_all(),
        distractors=distract_all,
    )


@pytest.fixture
def config(tmp_path):
    return PipelineConfig(output_file=str(tmp_path / "out" / "dataset.json"), goal="specific")


class TestGenerateDatasetStep:
    def test_writes_camel_case_artifact(self, config, client) -> None:
        step = GenerateDatasetStep(config, generation_client=client, validation_client=client)

        assert step.run(units=[make_unit("Solar panels make electricity.")])

        with open(config.output_file, encoding="utf-8") as f:
            artifact = json.load(f)
        assert artifact["metadata"]["goal"] == "specific"
        dataset = artifact["dataset"]
        assert dataset["identifiedThemes"] == ["Energy"]
        assert dataset["correctAnswerCount"] == 3
        assert dataset["incorrectAnswerCount"] == 3
        assert dataset["qaPairs"][0]["source"] == "original"
        assert dataset["qaPairs"][0]["validationStatus"] == "validated"

    def test_progress_callback_receives_events(self, config, client) -> None:
        events = []
        step = GenerateDatasetStep(config, generation_client=client, validation_client=client, on_progress=events.append)
        step.run(units=[make_unit("text")])
        assert events[-1].progress_percent == 100

    def test_zero_yield_writes_nothing(self, config, fake_client, tmp_path) -> None:
        client = fake_client(themes="[]", grounded=InferenceError("down"), synthetic="[]")
        step = GenerateDatasetStep(config, generation_client=client, validation_client=client)

        assert step.run(units=[make_unit("text")]) is False
        assert step.result.error
        assert not (tmp_path / "out" / "dataset.json").exists()

    def test_loads_units_from_input_dir(self, config, client, tmp_path) -> None:
        docs = tmp_path / "docs"
        docs.mkdir()
        (docs / "notes.txt").write_text("Wind turbines spin.", encoding="utf-8")
        config.input_dir = str(docs)

        step = GenerateDatasetStep(config, generation_client=client, validation_client=client)

        assert step.run()
        assert "Wind turbines spin." in client.calls_for("grounded")[0]["prompt"]

    def test_missing_input_fails_prerequisites(self, config, client) -> None:
        step = GenerateDatasetStep(config, generation_client=client, validation_client=client)
        assert step.check_prerequisites() is False
        assert step.run() is False
        assert client.calls == []

    def test_invalid_config_rejected(self, tmp_path, client) -> None:
        config = PipelineConfig(output_file=str(tmp_path / "d.json"), validation_batch_size=0)
        with pytest.raises(ConfigurationError):
            GenerateDatasetStep(config, generation_client=client, validation_client=client)

    def test_extract_themes_only(self, config, client, tmp_path) -> None:
        docs = tmp_path / "docs"
        docs.mkdir()
        (docs / "notes.txt").write_text("Wind turbines spin.", encoding="utf-8")
        config.input_dir = str(docs)

        step = GenerateDatasetStep(config, generation_client=client, validation_client=client)

        assert step.extract_themes() == ["Energy"]
        assert [call["stage"] for call in client.calls] == ["themes"]
