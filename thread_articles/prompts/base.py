"""Prompt container shared by the article and classification prompts."""

from dataclasses import dataclass
from typing import Dict, Iterable, List

from ..models import Post


@dataclass(frozen=True)
class PromptSpec:
    """A rendered prompt: system + user instructions and sampling temperature."""

    system_instruction: str
    user_instruction: str
    temperature: float

    def to_messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system_instruction},
            {"role": "user", "content": self.user_instruction},
        ]


def valid_post_texts(posts: Iterable[Post]) -> List[str]:
    """Texts of posts that have a non-empty body, in order."""
    return [post.com for post in posts if post.com and post.com.strip()]
