from typing import List, Optional, Sequence

from dataset_pipeline.core.llm.inference import InferenceClient
from dataset_pipeline.core.llm.parsers import JSONArrayParser, normalize_pair
from dataset_pipeline.core.llm.prompts import (
    GROUNDED_PAIRS_TEMPLATE,
    SYNTHETIC_PAIRS_TEMPLATE,
    themes_section,
)
from dataset_pipeline.core.utils.helpers import log_message
from dataset_pipeline.errors import InferenceError, ResponseParseError
from dataset_pipeline.models import FineTuningGoal, PairSource, QAPair, Skipped, StageOutcome


class PairGenerator:
    """Produces one small batch of Q&A pairs per call.

    Grounded mode generates strictly from the supplied corpus; synthetic
    mode (empty corpus) generates from theme labels alone. An empty theme
    list is not an error in either mode.
    """

    def __init__(
        self,
        client: InferenceClient,
        min_pairs: int = 5,
        max_pairs: int = 8,
        parser: Optional[JSONArrayParser] = None,
    ):
        self.client = client
        self.min_pairs = min_pairs
        self.max_pairs = max_pairs
        self.parser = parser or JSONArrayParser()

    def build_prompt(self, corpus: str, themes: Sequence[str], goal: FineTuningGoal, grounded: bool) -> str:
        template = GROUNDED_PAIRS_TEMPLATE if grounded else SYNTHETIC_PAIRS_TEMPLATE
        values = {
            "goal": goal.value,
            "themes_section": themes_section(themes),
            "min_pairs": self.min_pairs,
            "max_pairs": self.max_pairs,
        }
        if grounded:
            values["content"] = corpus
        return template.format(**values)

    def generate_pairs(self, corpus: str, themes: Sequence[str], goal: FineTuningGoal, grounded: bool) -> StageOutcome[List[QAPair]]:
        mode = "grounded" if grounded else "synthetic"
        if grounded and not corpus:
            log_message("No content available for grounded generation; skipping call", "warning")
            return StageOutcome([])
        if not grounded:
            # Synthetic mode never sees source content
            corpus = ""

        source = PairSource.ORIGINAL if grounded else PairSource.SYNTHETIC
        prompt = self.build_prompt(corpus, themes, goal, grounded)
        try:
            response = self.client.generate(prompt)
            items = self.parser.parse(response, prompt=prompt, model=self.client.name, context={"stage": mode})
        except (InferenceError, ResponseParseError) as e:
            log_message(f"Error generating {mode} Q&A pairs: {e}", "warning")
            return StageOutcome([], e)

        pairs: List[QAPair] = []
        for idx, item in enumerate(items):
            outcome = normalize_pair(item, source)
            if isinstance(outcome, Skipped):
                log_message(f"Skipped {mode} item {idx}: {outcome.reason}", "debug")
                continue
            pairs.append(outcome.pair)

        if len(pairs) > self.max_pairs:
            log_message(f"Keeping first {self.max_pairs} of {len(pairs)} {mode} pairs")
            pairs = pairs[:self.max_pairs]

        log_message(f"Generated {len(pairs)} {mode} Q&A pairs")
        return StageOutcome(pairs)
