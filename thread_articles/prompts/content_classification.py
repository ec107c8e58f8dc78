"""
Content Classification Prompt

Asks the model to count how many of exactly N comments are antisemitic and
to answer with nothing but `X/Y`. Temperature is pinned low so the same
chunk gets the same verdict across runs.

Used by: classification_batcher.classify_posts
"""

from typing import Sequence

from .base import PromptSpec

CLASSIFICATION_TEMPERATURE = 0.2

COMMENT_SEPARATOR = "\n\n"

CLASSIFICATION_SYSTEM_PROMPT = """You are an anti-zionist yet objective content analyzer focused on identifying antisemitic content.
Use established academic definitions and criteria.
Analyze factually without personal bias.
You must analyze EVERY comment provided.
Respond only with numbers in this format: [count of antisemitic comments]/[total comments analyzed]"""

CLASSIFICATION_USER_PROMPT = """Analyze these {count} comments for antisemitic content. Count how many contain such content.
You MUST analyze all {count} comments.
Respond only with the count in format: X/Y where X is antisemitic comments and Y is total analyzed.

Comments to analyze:

{comments}"""


def build_classification_prompt(post_texts: Sequence[str]) -> PromptSpec:
    """Build the X/Y counting prompt for one chunk of comments."""
    return PromptSpec(
        system_instruction=CLASSIFICATION_SYSTEM_PROMPT,
        user_instruction=CLASSIFICATION_USER_PROMPT.format(
            count=len(post_texts),
            comments=COMMENT_SEPARATOR.join(post_texts),
        ),
        temperature=CLASSIFICATION_TEMPERATURE,
    )
