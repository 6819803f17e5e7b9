from typing import List, Optional, Sequence

from dataset_pipeline.core.llm.inference import InferenceClient
from dataset_pipeline.core.llm.parsers import JSONArrayParser
from dataset_pipeline.core.llm.prompts import DISTRACTOR_TEMPLATE
from dataset_pipeline.core.utils.helpers import log_message
from dataset_pipeline.errors import InferenceError, ResponseParseError
from dataset_pipeline.models import PairSource, QAPair, StageOutcome


class DistractorSynthesizer:
    """Produces plausible-but-incorrect answers for the leading correct pairs."""

    def __init__(self, client: InferenceClient, cap: int = 5, parser: Optional[JSONArrayParser] = None):
        self.client = client
        self.cap = cap
        self.parser = parser or JSONArrayParser()

    def synthesize_distractors(self, correct_pairs: Sequence[QAPair]) -> StageOutcome[List[QAPair]]:
        subset = list(correct_pairs[:self.cap])
        if not subset:
            return StageOutcome([])

        items = "\n\n".join(
            f"Pair {i + 1}:\nQ: {pair.question}\nA: {pair.answer}" for i, pair in enumerate(subset)
        )
        prompt = DISTRACTOR_TEMPLATE.format(items=items)
        try:
            response = self.client.generate(prompt)
            results = self.parser.parse(response, prompt=prompt, model=self.client.name, context={"stage": "distractors"})
        except (InferenceError, ResponseParseError) as e:
            log_message(f"Error generating incorrect answers: {e}", "warning")
            return StageOutcome([], e)

        distractors: List[QAPair] = []
        used = set()
        for position, item in enumerate(results):
            if not isinstance(item, dict):
                continue
            answer = item.get("incorrect_answer")
            if not isinstance(answer, str) or not answer.strip():
                continue
            index = item.get("index")
            if isinstance(index, int) and not isinstance(index, bool) and 1 <= index <= len(subset):
                slot = index - 1
            elif position < len(subset):
                slot = position
            else:
                continue
            if slot in used:
                continue
            used.add(slot)
            distractors.append(QAPair(
                question=subset[slot].question,
                answer=answer.strip(),
                is_correct=False,
                source=PairSource.GENERATED_DISTRACTOR,
            ))

        log_message(f"Generated {len(distractors)} incorrect answers from {len(subset)} pairs")
        return StageOutcome(distractors)
