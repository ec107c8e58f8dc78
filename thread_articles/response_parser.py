"""
Tolerant decoding of completion responses.

Model output is untrusted free text. Each response shape has two layers:
a decoder that returns whatever structure it can find (None for missing
parts), and a parse_* function that applies the sentinel policy so one
malformed response never fails a thread.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

UNTITLED_HEADLINE = "Untitled Thread"
EMPTY_ARTICLE = "No content available"

# (flagged, analyzed) when no X/Y pair is present: one inconclusive item
INCONCLUSIVE_COUNTS = (0, 1)

_HEADLINE_RE = re.compile(r"HEADLINE:\s*(.+?)(?:\n|$)", re.IGNORECASE)
_ARTICLE_RE = re.compile(r"ARTICLE:\s*(.+?)(?:\n|$)", re.IGNORECASE)
_COUNT_PAIR_RE = re.compile(r"(\d+)\s*/\s*(\d+)")
_EMPHASIS_RE = re.compile(r"\*\*")


@dataclass(frozen=True)
class DecodedArticle:
    """Whatever the decoder could recover from an article response."""

    headline: Optional[str] = None
    article: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.headline is not None and self.article is not None


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = _EMPHASIS_RE.sub("", value).strip()
    return cleaned or None


def decode_article_response(text: Optional[str]) -> DecodedArticle:
    """Extract the HEADLINE:/ARTICLE: labelled lines, stripping emphasis markers."""
    if not text:
        return DecodedArticle()

    headline_match = _HEADLINE_RE.search(text)
    article_match = _ARTICLE_RE.search(text)

    return DecodedArticle(
        headline=_clean(headline_match.group(1)) if headline_match else None,
        article=_clean(article_match.group(1)) if article_match else None,
    )


def parse_article_response(text: Optional[str]) -> Tuple[str, str]:
    """
    Parse an article response into (headline, article).

    Missing parts are replaced with UNTITLED_HEADLINE / EMPTY_ARTICLE.
    """
    decoded = decode_article_response(text)
    headline = decoded.headline or UNTITLED_HEADLINE
    article = decoded.article or EMPTY_ARTICLE

    logger.info(f'Generated headline ({len(headline.split())} words): "{headline}"')
    logger.info(f"Generated article ({len(article.split())} words)")

    if not decoded.complete:
        logger.warning("Failed to generate complete content")

    return headline, article


def decode_classification_response(text: Optional[str]) -> Optional[Tuple[int, int]]:
    """Return the first X/Y integer pair in the response, or None."""
    if not text:
        return None
    match = _COUNT_PAIR_RE.search(text)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def parse_classification_response(text: Optional[str]) -> Tuple[int, int]:
    """Parse a classification response into (flagged, analyzed); (0, 1) if unparseable."""
    counts = decode_classification_response(text)
    if counts is None:
        logger.debug(f"No X/Y pair in classification response: {text!r}")
        return INCONCLUSIVE_COUNTS
    return counts
