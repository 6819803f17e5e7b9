from typing import List, Optional

from dataset_pipeline.core.llm.inference import InferenceClient
from dataset_pipeline.core.llm.parsers import JSONArrayParser
from dataset_pipeline.core.llm.prompts import THEMES_TEMPLATE
from dataset_pipeline.core.utils.helpers import log_message
from dataset_pipeline.errors import InferenceError, ResponseParseError
from dataset_pipeline.models import FineTuningGoal, StageOutcome


class ThemeExtractor:
    """Derives topical themes from a budgeted corpus."""

    def __init__(self, client: InferenceClient, parser: Optional[JSONArrayParser] = None):
        self.client = client
        self.parser = parser or JSONArrayParser()

    @staticmethod
    def _clean_themes(items) -> List[str]:
        themes: List[str] = []
        seen = set()
        for item in items:
            if isinstance(item, dict):
                item = item.get("theme") or item.get("name")
            if not isinstance(item, str):
                continue
            theme = item.strip()
            if theme and theme.lower() not in seen:
                seen.add(theme.lower())
                themes.append(theme)
        return themes

    def identify_themes(self, corpus: str, goal: FineTuningGoal) -> StageOutcome[List[str]]:
        prompt = THEMES_TEMPLATE.format(goal=goal.value, content=corpus)
        try:
            response = self.client.generate(prompt)
            items = self.parser.parse(response, prompt=prompt, model=self.client.name, context={"stage": "themes"})
        except (InferenceError, ResponseParseError) as e:
            log_message(f"Error identifying themes: {e}", "warning")
            return StageOutcome([], e)

        themes = self._clean_themes(items)
        log_message(f"Identified {len(themes)} themes")
        return StageOutcome(themes)
