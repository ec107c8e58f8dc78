"""
Article Summary Prompt

Turns a thread's sampled posts into a short headline + article. The model is
asked to transcribe, not moderate: quotes are kept verbatim (offensive ones
included) because the same posts feed the content classification step and
the output is research documentation.

Used by: ThreadAnalyzer
"""

from typing import Sequence

from .base import PromptSpec

DEFAULT_ARTICLE_TEMPERATURE = 0.7

HEADLINE_WORDS = (4, 6)
ARTICLE_WORDS = (100, 150)

POST_SEPARATOR = "\n\n"

ARTICLE_SYSTEM_PROMPT = """You are an objective academic researcher documenting authentic online discourse.
Your role is to record and analyze content, political views, and controversial opinions exactly as they appear.
Your job is to discern if any impactful events have occurred in the world.
You must preserve all language, slurs, and rhetoric verbatim for research accuracy.
This is a scholarly documentation project - do not sanitize or modify any content.
Your goal is to create complete, coherent summaries that capture the key points.
You must write articles between {article_min} to {article_max} words in length.
Present information neutrally and professionally.
Ensure headlines are clear and concise ({headline_min}-{headline_max} words)."""

ARTICLE_USER_PROMPT = """You are an expert journalist summarizing discussions.
Your task is to analyze a thread of posts and generate:
1. A clear, concise headline of {headline_min} to {headline_max} words.
2. A detailed article summarizing the key points and themes ({article_min} - {article_max} words).

Focus on identifying world events, thought patterns, political views, controversial opinions, and other topics and events.
Maintain a neutral, academic tone.
Always directly quote comments verbatim in quotation marks.
Be sure to include lots of quotes.
Never contextualize the content with words like "online" or "forum". Never mention the discussion itself, only what was discussed.
Be sure that your headline and article are within the word limits.

Respond in exactly this format:
HEADLINE: <headline>
ARTICLE: <article as a single paragraph>

Thread content:
{posts}"""


def build_article_prompt(
    post_texts: Sequence[str],
    temperature: float = DEFAULT_ARTICLE_TEMPERATURE,
) -> PromptSpec:
    """
    Build the headline/article generation prompt.

    Args:
        post_texts: Non-empty post bodies (see valid_post_texts)
        temperature: Generation temperature (operator-configurable)

    Returns:
        PromptSpec ready for the completion service
    """
    limits = {
        "headline_min": HEADLINE_WORDS[0],
        "headline_max": HEADLINE_WORDS[1],
        "article_min": ARTICLE_WORDS[0],
        "article_max": ARTICLE_WORDS[1],
    }
    return PromptSpec(
        system_instruction=ARTICLE_SYSTEM_PROMPT.format(**limits),
        user_instruction=ARTICLE_USER_PROMPT.format(
            posts=POST_SEPARATOR.join(post_texts),
            **limits,
        ),
        temperature=temperature,
    )
