"""
Prompt templates for the article pipeline.
"""

from .base import PromptSpec, valid_post_texts

from .article_summary import (
    ARTICLE_SYSTEM_PROMPT,
    ARTICLE_USER_PROMPT,
    DEFAULT_ARTICLE_TEMPERATURE,
    build_article_prompt,
)

from .content_classification import (
    CLASSIFICATION_SYSTEM_PROMPT,
    CLASSIFICATION_USER_PROMPT,
    CLASSIFICATION_TEMPERATURE,
    build_classification_prompt,
)

__all__ = [
    "PromptSpec",
    "valid_post_texts",
    # Article summary
    "ARTICLE_SYSTEM_PROMPT",
    "ARTICLE_USER_PROMPT",
    "DEFAULT_ARTICLE_TEMPERATURE",
    "build_article_prompt",
    # Content classification
    "CLASSIFICATION_SYSTEM_PROMPT",
    "CLASSIFICATION_USER_PROMPT",
    "CLASSIFICATION_TEMPERATURE",
    "build_classification_prompt",
]
