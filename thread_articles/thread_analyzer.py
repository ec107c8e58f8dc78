"""
Per-thread analysis.

Stages run forward only: sampled -> summarized -> classified -> complete.
A failure is raised as ThreadAnalysisError carrying the stage it happened
in, and the job runner skips the thread. Classification failures are
absorbed chunk by chunk and never escalate.
"""

import logging
import random
from enum import Enum
from typing import Optional

from .classification_batcher import classify_posts
from .completion_client import CompletionService, complete
from .config import ArticleGeneratorConfig
from .errors import ThreadAnalysisError
from .models import ArticleAnalysis, ArticleMetadata, ClassificationStats, Thread, now_millis
from .prompts import build_article_prompt, valid_post_texts
from .response_parser import parse_article_response
from .sampler import sample_posts

logger = logging.getLogger(__name__)


class ThreadStage(str, Enum):
    """Progress of a single thread through the analyzer."""

    SAMPLED = "sampled"
    SUMMARIZED = "summarized"
    CLASSIFIED = "classified"
    COMPLETE = "complete"


class ThreadAnalyzer:
    """Produces one ArticleAnalysis per thread."""

    def __init__(
        self,
        client: CompletionService,
        config: Optional[ArticleGeneratorConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.client = client
        self.config = config or ArticleGeneratorConfig()
        self.rng = rng

    async def analyze(self, thread: Thread) -> ArticleAnalysis:
        """
        Analyze one thread.

        Raises:
            ThreadAnalysisError: a stage failed; the original error is chained
        """
        stage = ThreadStage.SAMPLED
        try:
            sampled = sample_posts(thread, self.config.analysis_percentage, rng=self.rng)
            post_texts = valid_post_texts(sampled)

            stage = self._advance(thread, ThreadStage.SUMMARIZED)
            article_prompt = build_article_prompt(post_texts, temperature=self.config.temperature)
            response = await complete(self.client, article_prompt, model=self.config.model)
            headline, article = parse_article_response(response)

            stage = self._advance(thread, ThreadStage.CLASSIFIED)
            tally = await classify_posts(
                self.client,
                post_texts,
                batch_size=self.config.classification_batch_size,
                model=self.config.model,
                thread_id=thread.no,
            )

            stage = self._advance(thread, ThreadStage.COMPLETE)
            record = ArticleAnalysis(
                thread_id=thread.no,
                headline=headline,
                article=article,
                antisemitic_stats=ClassificationStats.from_counts(tally.flagged, tally.analyzed),
                metadata=ArticleMetadata(
                    total_posts=len(thread.posts),
                    analyzed_posts=len(sampled),
                    generated_at=now_millis(),
                ),
            )
        except Exception as e:
            raise ThreadAnalysisError(thread.no, stage.value, e) from e

        logger.info(f"Thread {thread.no} analysis stats:")
        logger.info(f"- Total valid posts: {len(post_texts)}")
        logger.info(f"- Posts analyzed for antisemitic content: {tally.analyzed}")
        logger.info(f"- Antisemitic comments found: {tally.flagged}")
        if tally.skipped_chunks:
            logger.warning(
                f"- Skipped {tally.skipped_chunks}/{len(tally.chunks)} classification chunks"
            )
        return record

    def _advance(self, thread: Thread, stage: ThreadStage) -> ThreadStage:
        logger.debug(f"Thread {thread.no}: entering {stage.value}")
        return stage
