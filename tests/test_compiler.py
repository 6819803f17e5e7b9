"""Tests for DatasetCompiler."""

import json

import pytest
from pydantic import ValidationError

from dataset_pipeline.core.dataset import DatasetCompiler
from dataset_pipeline.models import PairSource, QAPair, ValidationStatus
from tests.conftest import make_pairs


def _distractors(n):
    return [
        QAPair(question=f"Question {i}?", answer=f"Wrong {i}.", is_correct=False, source=PairSource.GENERATED_DISTRACTOR)
        for i in range(n)
    ]


@pytest.fixture
def stage_outputs():
    grounded = make_pairs(3)
    synthetic = make_pairs(2, PairSource.SYNTHETIC)
    distractors = _distractors(2)
    return grounded, synthetic, distractors


class TestCompile:
    def test_order_is_grounded_then_synthetic_then_distractors(self, stage_outputs) -> None:
        dataset = DatasetCompiler().compile(*stage_outputs, ["A"], "text", 1, 0)
        sources = [pair.source for pair in dataset.qa_pairs]
        assert sources == [PairSource.ORIGINAL] * 3 + [PairSource.SYNTHETIC] * 2 + [PairSource.GENERATED_DISTRACTOR] * 2

    def test_counts(self, stage_outputs) -> None:
        dataset = DatasetCompiler().compile(*stage_outputs, ["A", "B"], "text", 2, 1)
        assert dataset.correct_answer_count == 5
        assert dataset.incorrect_answer_count == 2
        assert dataset.source_file_count == 2
        assert dataset.source_url_count == 1
        assert dataset.identified_themes == ("A", "B")
        assert dataset.combined_source_text == "text"

    def test_incorrect_count_matches_distractor_source(self, stage_outputs) -> None:
        dataset = DatasetCompiler().compile(*stage_outputs, [], "", 0, 0)
        distractor_count = sum(1 for p in dataset.qa_pairs if p.source == PairSource.GENERATED_DISTRACTOR)
        assert dataset.incorrect_answer_count == distractor_count

    def test_rejected_pairs_still_count_as_correct(self) -> None:
        pairs = make_pairs(2)
        pairs[1].validation_status = ValidationStatus.REJECTED
        dataset = DatasetCompiler().compile(pairs, [], [], [], "", 0, 0)
        assert dataset.correct_answer_count == 2

    def test_compiling_twice_gives_identical_json(self, stage_outputs) -> None:
        compiler = DatasetCompiler()
        first = compiler.compile(*stage_outputs, ["A"], "text", 1, 0)
        second = compiler.compile(*stage_outputs, ["A"], "text", 1, 0)
        assert first.to_json() == second.to_json()

    def test_dataset_does_not_share_pairs_with_inputs(self, stage_outputs) -> None:
        grounded = stage_outputs[0]
        dataset = DatasetCompiler().compile(*stage_outputs, [], "", 0, 0)
        grounded[0].answer = "changed"
        assert dataset.qa_pairs[0].answer == "Answer 0."

    def test_dataset_is_frozen(self, stage_outputs) -> None:
        dataset = DatasetCompiler().compile(*stage_outputs, [], "", 0, 0)
        with pytest.raises(ValidationError):
            dataset.correct_answer_count = 99

    def test_json_uses_camel_case_fields(self, stage_outputs) -> None:
        data = json.loads(DatasetCompiler().compile(*stage_outputs, ["A"], "text", 1, 0).to_json())
        assert set(data) == {
            "qaPairs", "combinedSourceText", "sourceFileCount", "sourceUrlCount",
            "identifiedThemes", "correctAnswerCount", "incorrectAnswerCount",
        }
        assert data["qaPairs"][-1]["isCorrect"] is False
        assert data["qaPairs"][-1]["source"] == "generated_distractor"

    def test_compiled_pairs_are_read_only(self, stage_outputs) -> None:
        dataset = DatasetCompiler().compile(*stage_outputs, [], "", 0, 0)
        with pytest.raises(ValidationError):
            dataset.qa_pairs[0].answer = "x"
        assert dataset.qa_pairs[0].answer == "Answer 0."

    def test_stage_pairs_stay_mutable(self, stage_outputs) -> None:
        grounded = stage_outputs[0]
        DatasetCompiler().compile(*stage_outputs, [], "", 0, 0)
        grounded[0].validation_status = ValidationStatus.REJECTED
        assert grounded[0].validation_status == ValidationStatus.REJECTED
