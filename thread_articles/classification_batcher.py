"""
Sub-batched content classification.

A thread's post texts are split into sequential chunks (the completion
service gets unreliable on long lists) and each chunk is counted with its
own request. Chunk results are reduced into one tally.

Failure isolation per chunk:
- call fails            -> chunk skipped, contributes nothing, next chunk runs
- model reports Y != n  -> warning; the real chunk size n is counted, since
                           the model's own total is not ground truth
- reply has no X/Y      -> parser sentinel (0/1), then corrected to n as above
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, TypeVar, Union

from .completion_client import CompletionService, complete
from .config import DEFAULT_CLASSIFICATION_BATCH_SIZE, DEFAULT_MODEL
from .prompts.content_classification import build_classification_prompt
from .response_parser import parse_classification_response

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChunkOutcome(str, Enum):
    """How a chunk's counts were obtained."""

    SUCCESS = "success"
    CORRECTED = "corrected"  # model's total disagreed with the chunk size
    SKIPPED = "skipped"  # completion call failed


@dataclass(frozen=True)
class ChunkResult:
    """Counts contributed by one classification chunk."""

    index: int
    size: int
    flagged: int
    analyzed: int
    outcome: ChunkOutcome
    error: Optional[str] = None


@dataclass
class ClassificationTally:
    """Aggregate of all chunk results for one thread."""

    chunks: List[ChunkResult] = field(default_factory=list)

    @property
    def flagged(self) -> int:
        return sum(c.flagged for c in self.chunks)

    @property
    def analyzed(self) -> int:
        return sum(c.analyzed for c in self.chunks)

    @property
    def skipped_chunks(self) -> int:
        return sum(1 for c in self.chunks if c.outcome == ChunkOutcome.SKIPPED)

    @property
    def percentage(self) -> float:
        """Flagged share in percent; 0.0 when nothing was analyzed."""
        analyzed = self.analyzed
        return 100 * self.flagged / analyzed if analyzed > 0 else 0.0


def chunk_posts(items: Sequence[T], size: int = DEFAULT_CLASSIFICATION_BATCH_SIZE) -> List[List[T]]:
    """Split items into sequential chunks of at most `size`."""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def reconcile_chunk_counts(
    index: int,
    chunk_size: int,
    reported_flagged: int,
    reported_analyzed: int,
    thread_id: Union[int, str, None] = None,
) -> ChunkResult:
    """
    Turn the model's (flagged, analyzed) answer into trusted chunk counts.

    The analyzed count is always the real chunk size; a disagreeing
    self-report is logged. Flagged is clamped into [0, chunk_size].
    """
    flagged = max(0, min(reported_flagged, chunk_size))
    if flagged != reported_flagged:
        logger.warning(
            f"Thread {thread_id} chunk {index + 1}: flagged count {reported_flagged} "
            f"out of range, clamped to {flagged}"
        )

    if reported_analyzed != chunk_size:
        logger.warning(
            f"Thread {thread_id} chunk {index + 1}: batch size mismatch, "
            f"expected {chunk_size}, got {reported_analyzed}"
        )
        outcome = ChunkOutcome.CORRECTED
    else:
        outcome = ChunkOutcome.SUCCESS

    return ChunkResult(
        index=index,
        size=chunk_size,
        flagged=flagged,
        analyzed=chunk_size,
        outcome=outcome,
    )


async def classify_posts(
    client: CompletionService,
    post_texts: Sequence[str],
    batch_size: int = DEFAULT_CLASSIFICATION_BATCH_SIZE,
    model: str = DEFAULT_MODEL,
    thread_id: Union[int, str, None] = None,
) -> ClassificationTally:
    """
    Count flagged comments across all chunks of a thread.

    Chunks run strictly one after another. Never raises for a failed
    chunk; the chunk is recorded as skipped instead.

    Args:
        client: Completion service
        post_texts: Non-empty post bodies of the sampled posts
        batch_size: Max comments per request
        model: Chat model name
        thread_id: For log context only

    Returns:
        ClassificationTally with one ChunkResult per chunk
    """
    tally = ClassificationTally()

    for index, chunk in enumerate(chunk_posts(post_texts, batch_size)):
        try:
            text = await complete(client, build_classification_prompt(chunk), model=model)
        except Exception as e:
            logger.error(f"Error analyzing thread {thread_id} batch {index + 1}: {e}")
            tally.chunks.append(
                ChunkResult(
                    index=index,
                    size=len(chunk),
                    flagged=0,
                    analyzed=0,
                    outcome=ChunkOutcome.SKIPPED,
                    error=str(e),
                )
            )
            continue

        flagged, analyzed = parse_classification_response(text)
        tally.chunks.append(
            reconcile_chunk_counts(index, len(chunk), flagged, analyzed, thread_id=thread_id)
        )

    return tally
