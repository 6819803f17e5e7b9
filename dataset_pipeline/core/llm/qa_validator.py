from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dataset_pipeline.core.llm.inference import InferenceClient
from dataset_pipeline.core.llm.parsers import JSONArrayParser
from dataset_pipeline.core.llm.prompts import VALIDATION_TEMPLATE
from dataset_pipeline.core.utils.helpers import log_message
from dataset_pipeline.errors import InferenceError, ResponseParseError
from dataset_pipeline.models import QAPair, StageOutcome, ValidationResult, ValidationStatus

DEFAULT_CONFIDENCE = 0.5
JUDGED_CONFIDENCE_WHEN_MISSING = 0.8
CALL_FAILED_REASON = "validation failed"
PARSE_FAILED_REASON = "parsing failed"


def _confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return JUDGED_CONFIDENCE_WHEN_MISSING
    score = float(value)
    # Some judges answer on a 0-100 scale
    if 1.0 < score <= 100.0:
        score = score / 100.0
    return min(1.0, max(0.0, score))


class QAValidator:
    """Judges pairs in fixed-size sub-batches and returns one result per input pair, in input order.

    Sub-batches run concurrently (bounded by ``max_concurrency``). A sub-batch
    whose call or response fails gets low-confidence defaults for each of its
    pairs; validation never drops a pair.
    """

    def __init__(
        self,
        client: InferenceClient,
        batch_size: int = 5,
        max_concurrency: int = 3,
        parser: Optional[JSONArrayParser] = None,
    ):
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.client = client
        self.batch_size = batch_size
        self.max_concurrency = max(1, max_concurrency)
        self.parser = parser or JSONArrayParser()

    def _default_results(self, offset: int, count: int, reason: str) -> List[ValidationResult]:
        return [
            ValidationResult(pair_index=offset + i, is_valid=True, confidence=DEFAULT_CONFIDENCE, reasoning=reason)
            for i in range(count)
        ]

    def _build_prompt(self, batch: Sequence[QAPair]) -> str:
        items = "\n\n".join(
            f"Item {idx + 1}:\nQ: {pair.question}\nA: {pair.answer}" for idx, pair in enumerate(batch)
        )
        return VALIDATION_TEMPLATE.format(items=items)

    def _map_judgements(self, items: List[Any], offset: int, count: int) -> List[ValidationResult]:
        judged: Dict[int, ValidationResult] = {}
        for position, item in enumerate(items):
            if not isinstance(item, dict):
                continue
            index = item.get("index")
            if isinstance(index, int) and not isinstance(index, bool) and 1 <= index <= count and (index - 1) not in judged:
                slot = index - 1
            elif position < count and position not in judged:
                slot = position
            else:
                continue
            is_valid = item.get("isValid")
            reasoning = item.get("reasoning")
            judged[slot] = ValidationResult(
                pair_index=offset + slot,
                is_valid=is_valid if isinstance(is_valid, bool) else True,
                confidence=_confidence(item.get("accuracy")),
                reasoning=reasoning if isinstance(reasoning, str) and reasoning else "Validated",
            )

        results = []
        for slot in range(count):
            results.append(judged.get(slot) or self._default_results(offset + slot, 1, PARSE_FAILED_REASON)[0])
        return results

    def _validate_sub_batch(self, job: Tuple[int, Sequence[QAPair]]) -> Tuple[List[ValidationResult], Optional[Exception]]:
        offset, batch = job
        prompt = self._build_prompt(batch)
        try:
            response = self.client.judge(prompt)
        except InferenceError as e:
            log_message(f"Error validating sub-batch at {offset}: {e}", "warning")
            return self._default_results(offset, len(batch), CALL_FAILED_REASON), e

        try:
            items = self.parser.parse(response, prompt=prompt, model=self.client.name, context={"stage": "validation", "offset": offset})
        except ResponseParseError as e:
            log_message(f"Failed to parse validation response for sub-batch at {offset}", "warning")
            return self._default_results(offset, len(batch), PARSE_FAILED_REASON), e

        return self._map_judgements(items, offset, len(batch)), None

    def validate(self, pairs: Sequence[QAPair]) -> StageOutcome[List[ValidationResult]]:
        if not pairs:
            return StageOutcome([])

        jobs = [(i, pairs[i:i + self.batch_size]) for i in range(0, len(pairs), self.batch_size)]
        log_message(f"Validating {len(pairs)} pairs in {len(jobs)} sub-batches")

        results: List[ValidationResult] = []
        first_error: Optional[Exception] = None
        with ThreadPoolExecutor(max_workers=min(self.max_concurrency, len(jobs))) as executor:
            # map() yields in submission order regardless of completion order
            for batch_results, error in executor.map(self._validate_sub_batch, jobs):
                results.extend(batch_results)
                if error is not None and first_error is None:
                    first_error = error

        valid_count = sum(1 for r in results if r.is_valid)
        log_message(f"Validation complete: {valid_count}/{len(results)} judged valid")
        return StageOutcome(results, first_error)

    @staticmethod
    def annotate(pairs: Sequence[QAPair], results: Sequence[ValidationResult]) -> None:
        """Attach status and confidence to each pair by absolute index."""
        for result in results:
            if 0 <= result.pair_index < len(pairs):
                pair = pairs[result.pair_index]
                pair.validation_status = ValidationStatus.VALIDATED if result.is_valid else ValidationStatus.REJECTED
                pair.validation_confidence = result.confidence
