"""
Prompt templates for every model-backed stage.
"""

from langchain_core.prompts import PromptTemplate

THEMES_TEMPLATE = PromptTemplate.from_template(
    """Analyze the following content and identify key themes for {goal} fine-tuning:

{content}

Return a JSON array of theme names (strings only). Do not include any markdown formatting."""
)

GROUNDED_PAIRS_TEMPLATE = PromptTemplate.from_template(
    """Generate high-quality question-answer pairs from this content for {goal} fine-tuning.
Every answer must be supported strictly by the content below; do not add outside facts.

Content:
{content}
{themes_section}
Generate {min_pairs}-{max_pairs} diverse Q&A pairs. Return a pure JSON array with objects containing: "user" (question), "model" (answer). Do not include markdown formatting."""
)

SYNTHETIC_PAIRS_TEMPLATE = PromptTemplate.from_template(
    """Generate high-quality question-answer pairs for {goal} fine-tuning.

Generate synthetic Q&A pairs based on the following themes (no specific source content provided).
{themes_section}
Generate {min_pairs}-{max_pairs} diverse Q&A pairs. Return a pure JSON array with objects containing: "user" (question), "model" (answer). Do not include markdown formatting."""
)

VALIDATION_TEMPLATE = PromptTemplate.from_template(
    """Validate these Q&A pairs for quality and accuracy.

Pairs to validate:
{items}

Return a pure JSON array (no markdown) where each object corresponds to an item above (in order) and contains:
- "index": (number, 1-based index from above)
- "isValid": (boolean, is this a good training example?)
- "accuracy": (number 0.0-1.0)
- "reasoning": (string, brief explanation)

Do not include any explanation text outside the JSON."""
)

DISTRACTOR_TEMPLATE = PromptTemplate.from_template(
    """For each of the following Question-Answer pairs, generate a "distractor" answer.
A distractor is an incorrect but plausible answer.

Pairs:
{items}

Return a pure JSON array (no markdown) of objects containing:
- "index": (number, the pair number from above)
- "original_question": (string)
- "incorrect_answer": (string)"""
)


def themes_section(themes) -> str:
    if not themes:
        return "\nNo specific themes were identified; cover the most useful topics for this goal freely.\n"
    return f"\nThemes to focus on:\n{', '.join(themes)}\n"
