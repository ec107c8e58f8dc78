"""
Article generation job runner.

Orchestrates: load checkpoint -> skip completed threads -> analyze each
remaining thread (checkpoint after each) -> aggregate stats -> commit
articles.json -> clear checkpoint

Resume semantics: a job re-run after a crash never re-analyzes a thread
that made it into the checkpoint. Threads that never started, or were in
flight when the process died, are analyzed from scratch since nothing is
checkpointed mid-thread.

Usage:
    generator = ArticleGenerator(api_key)
    batch = await generator.generate_articles(threads, on_progress=print)
"""

import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence

from .completion_client import CompletionService, DeepSeekClient
from .config import ArticleGeneratorConfig
from .errors import ThreadAnalysisError
from .models import ArticleAnalysis, ArticleBatch, BatchStats, Thread, now_millis
from .progress_store import ProgressStore
from .thread_analyzer import ThreadAnalyzer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


def compute_batch_stats(records: Sequence[ArticleAnalysis]) -> BatchStats:
    """
    Aggregate stats over all records in a batch.

    The average flagged percentage only counts threads that had something
    to classify; threads with zero analyzed comments are left out rather
    than averaged in as 0%.
    """
    total_analyzed_posts = sum(r.metadata.analyzed_posts for r in records)
    classified = [r for r in records if r.antisemitic_stats.analyzed_comments > 0]
    if classified:
        average = sum(r.antisemitic_stats.percentage for r in classified) / len(classified)
    else:
        average = 0.0

    return BatchStats(
        total_threads=len(records),
        total_analyzed_posts=total_analyzed_posts,
        average_antisemitic_percentage=average,
        generated_at=now_millis(),
    )


class ArticleGenerator:
    """Resumable batch job turning threads into articles."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[ArticleGeneratorConfig] = None,
        client: Optional[CompletionService] = None,
        store: Optional[ProgressStore] = None,
    ):
        """
        Args:
            api_key: DeepSeek API key (defaults to DEEPSEEK_API_KEY); ignored
                when a client is injected
            config: Job settings (defaults to ArticleGeneratorConfig.from_env())
            client: Completion service override (tests, alternative backends)
            store: Checkpoint/output store override

        Raises:
            ConfigurationError: no client given and no API key available
        """
        self.config = config or ArticleGeneratorConfig.from_env()
        self.client = client or DeepSeekClient(
            api_key=api_key, timeout=self.config.request_timeout
        )
        self.store = store or ProgressStore(self.config.progress_file, self.config.output_file)
        self.analyzer = ThreadAnalyzer(self.client, self.config)
        self._stop_requested = False

    def request_stop(self) -> None:
        """Stop feeding new threads; the thread in progress finishes first."""
        self._stop_requested = True

    async def generate_articles(
        self,
        threads: Iterable[Thread],
        on_progress: Optional[ProgressCallback] = None,
    ) -> ArticleBatch:
        """
        Analyze threads and commit the batch.

        Thread-level failures are logged and skipped. Only a failed final
        commit escapes (OutputCommitError). If request_stop() was called,
        returns the partial batch without committing and keeps the
        checkpoint so the next run resumes.

        Args:
            threads: Threads to analyze, processed in order
            on_progress: Called with the thread id after each success

        Returns:
            ArticleBatch with every record (resumed + new)
        """
        self._stop_requested = False
        articles: List[ArticleAnalysis] = await self.store.load_checkpoint()
        completed_ids = {a.thread_id for a in articles}

        if articles:
            logger.info(
                f"Resuming from previous progress: {len(articles)} articles already processed"
            )

        remaining: List[Thread] = []
        queued_ids = set()
        for thread in threads:
            if thread.no in completed_ids:
                continue
            if thread.no in queued_ids:
                logger.warning(f"Thread {thread.no} appears more than once in input, skipping duplicate")
                continue
            queued_ids.add(thread.no)
            remaining.append(thread)

        failed = 0
        for position, thread in enumerate(remaining, start=1):
            if self._stop_requested:
                logger.info(
                    f"Stop requested, {len(remaining) - position + 1} threads left unprocessed"
                )
                return ArticleBatch(articles=articles, batch_stats=compute_batch_stats(articles))

            try:
                analysis = await self.analyzer.analyze(thread)
            except ThreadAnalysisError as e:
                failed += 1
                logger.error(f"Failed to analyze thread {thread.no} at stage {e.stage}: {e.cause}")
                continue

            articles.append(analysis)
            await self.store.save_checkpoint(articles)

            if on_progress:
                on_progress(str(thread.no))

        batch = ArticleBatch(articles=articles, batch_stats=compute_batch_stats(articles))

        logger.info("=" * 50)
        logger.info("Article generation completed!")
        logger.info(f"  Threads:        {batch.batch_stats.total_threads}")
        logger.info(f"  Failed:         {failed}")
        logger.info(f"  Analyzed posts: {batch.batch_stats.total_analyzed_posts}")
        logger.info(f"  Avg flagged %:  {batch.batch_stats.average_antisemitic_percentage:.2f}")
        logger.info("=" * 50)

        # Commit before clearing: a failed commit keeps the checkpoint for the re-run.
        await self.store.commit_output(batch)
        await self.store.clear_checkpoint()

        return batch


async def generate_articles(
    threads: Iterable[Thread],
    on_progress: Optional[ProgressCallback] = None,
    api_key: Optional[str] = None,
    **config_overrides: Any,
) -> ArticleBatch:
    """Run one job with config from the environment plus overrides."""
    config = ArticleGeneratorConfig.from_env(**config_overrides)
    generator = ArticleGenerator(api_key=api_key, config=config)
    return await generator.generate_articles(threads, on_progress=on_progress)
