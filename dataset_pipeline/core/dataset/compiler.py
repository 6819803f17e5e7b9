from typing import Sequence

from dataset_pipeline.models import CompiledQAPair, Dataset, PairSource, QAPair


class DatasetCompiler:
    """Pure aggregation of all stage outputs into the final Dataset."""

    def compile(
        self,
        grounded: Sequence[QAPair],
        synthetic: Sequence[QAPair],
        distractors: Sequence[QAPair],
        themes: Sequence[str],
        source_text: str,
        file_count: int,
        url_count: int,
    ) -> Dataset:
        # Read-only copies; later mutation of stage lists cannot reach the dataset
        pairs = tuple(
            CompiledQAPair.model_validate(pair.model_dump())
            for pair in [*grounded, *synthetic, *distractors]
        )
        incorrect = sum(1 for pair in pairs if pair.source == PairSource.GENERATED_DISTRACTOR)
        correct = sum(1 for pair in pairs if pair.is_correct and pair.source != PairSource.GENERATED_DISTRACTOR)
        return Dataset(
            qa_pairs=pairs,
            combined_source_text=source_text,
            source_file_count=file_count,
            source_url_count=url_count,
            identified_themes=tuple(themes),
            correct_answer_count=correct,
            incorrect_answer_count=incorrect,
        )
