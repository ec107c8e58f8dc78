"""
Article Generator (Job Runner) Tests

Resume semantics, thread-level failure isolation, batch stats and the
commit-or-fail contract of generate_articles.
Run with: pytest tests/test_article_generator.py -v
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from thread_articles.article_generator import ArticleGenerator, compute_batch_stats
from thread_articles.config import ArticleGeneratorConfig
from thread_articles.errors import ConfigurationError, OutputCommitError
from thread_articles.progress_store import ProgressStore
from tests.stubs import StubCompletionService, make_record


def _threads(make_thread, count, posts_per_thread=3):
    return [
        make_thread(n, [f"thread {n} post {i}" for i in range(posts_per_thread)])
        for n in range(1, count + 1)
    ]


def _comparable(batch):
    """Record content minus generation timestamps."""
    return {
        a.thread_id: (
            a.headline,
            a.article,
            a.antisemitic_stats,
            a.metadata.total_posts,
            a.metadata.analyzed_posts,
        )
        for a in batch.articles
    }


# -----------------------------------------------------------------------------
# compute_batch_stats
# -----------------------------------------------------------------------------


class TestComputeBatchStats:
    def test_sums_sampled_posts(self):
        stats = compute_batch_stats([make_record(1, sampled=3), make_record(2, sampled=5)])

        assert stats.total_threads == 2
        assert stats.total_analyzed_posts == 8

    def test_average_excludes_threads_without_classified_comments(self):
        records = [
            make_record(1, flagged=1, analyzed=4),  # 25%
            make_record(2, flagged=3, analyzed=4),  # 75%
            make_record(3, flagged=0, analyzed=0),  # excluded, not 0%
        ]

        stats = compute_batch_stats(records)

        assert stats.average_antisemitic_percentage == pytest.approx(50.0)

    def test_empty_batch(self):
        stats = compute_batch_stats([])

        assert stats.total_threads == 0
        assert stats.total_analyzed_posts == 0
        assert stats.average_antisemitic_percentage == 0.0


# -----------------------------------------------------------------------------
# Construction
# -----------------------------------------------------------------------------


class TestConstruction:
    def test_requires_api_key_without_injected_client(self, config, monkeypatch):
        monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)

        with pytest.raises(ConfigurationError):
            ArticleGenerator(config=config)

    def test_default_store_uses_config_paths(self, config, stub_client):
        generator = ArticleGenerator(config=config, client=stub_client)

        assert generator.store.progress_file == config.analysis_dir / "progress.json"
        assert generator.store.output_file == config.analysis_dir / "articles.json"


# -----------------------------------------------------------------------------
# generate_articles
# -----------------------------------------------------------------------------


@pytest.mark.integration
class TestGenerateArticles:
    @pytest.mark.asyncio
    async def test_processes_all_threads_and_commits(self, make_thread, config, stub_client):
        generator = ArticleGenerator(config=config, client=stub_client)
        progress = []

        batch = await generator.generate_articles(_threads(make_thread, 3), on_progress=progress.append)

        assert batch.thread_ids == [1, 2, 3]
        assert progress == ["1", "2", "3"]
        assert batch.batch_stats.total_threads == 3
        assert batch.batch_stats.total_analyzed_posts == 9
        assert config.output_file.exists()
        assert not config.progress_file.exists()

        data = json.loads(config.output_file.read_text())
        assert [a["threadId"] for a in data["articles"]] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_checkpoints_after_each_thread(self, make_thread, config, stub_client):
        generator = ArticleGenerator(config=config, client=stub_client)
        snapshots = []

        def on_progress(thread_id):
            data = json.loads(config.progress_file.read_text())
            snapshots.append([a["threadId"] for a in data["articles"]])

        await generator.generate_articles(_threads(make_thread, 3), on_progress=on_progress)

        assert snapshots == [[1], [1, 2], [1, 2, 3]]

    @pytest.mark.asyncio
    async def test_failed_thread_is_skipped(self, make_thread, config, caplog):
        def fail_thread_two(request):
            content = request.messages[-1]["content"]
            return "thread 2 post" in content and request.temperature != 0.2

        client = StubCompletionService(fail_when=fail_thread_two)
        generator = ArticleGenerator(config=config, client=client)
        progress = []

        batch = await generator.generate_articles(_threads(make_thread, 3), on_progress=progress.append)

        assert batch.thread_ids == [1, 3]
        assert progress == ["1", "3"]
        assert "Failed to analyze thread 2 at stage summarized" in caplog.text

    @pytest.mark.asyncio
    async def test_all_threads_failing_still_commits_empty_batch(self, make_thread, config):
        client = StubCompletionService(fail_when=lambda r: True)
        generator = ArticleGenerator(config=config, client=client)

        batch = await generator.generate_articles(_threads(make_thread, 2))

        assert batch.articles == []
        assert batch.batch_stats.average_antisemitic_percentage == 0.0
        assert config.output_file.exists()

    @pytest.mark.asyncio
    async def test_resume_skips_checkpointed_threads(self, make_thread, config):
        """Two threads, first checkpointed before a crash: second run adds only the second."""
        store = ProgressStore(config.progress_file, config.output_file)
        checkpointed = make_record(1, headline="From Checkpoint")
        await store.save_checkpoint([checkpointed])

        client = StubCompletionService()
        generator = ArticleGenerator(config=config, client=client)

        batch = await generator.generate_articles(_threads(make_thread, 2))

        assert batch.thread_ids == [1, 2]
        assert batch.articles[0] == checkpointed
        assert len(client.article_requests) == 1
        assert "thread 2 post" in client.article_requests[0].messages[-1]["content"]
        assert not config.progress_file.exists()

    @pytest.mark.asyncio
    async def test_resumed_run_matches_single_run(self, make_thread, tmp_path):
        """Stale checkpoint with a subset of results gives the same records as a clean run."""
        threads = _threads(make_thread, 4)
        flagged_threads = [
            make_thread(t.no, [p.com + (" FLAGGED" if i == 0 else "") for i, p in enumerate(t.posts)])
            for t in threads
        ]

        clean_config = ArticleGeneratorConfig(analysis_percentage=100, data_dir=tmp_path / "clean")
        clean = await ArticleGenerator(
            config=clean_config, client=StubCompletionService()
        ).generate_articles(flagged_threads)

        resumed_config = ArticleGeneratorConfig(analysis_percentage=100, data_dir=tmp_path / "resumed")
        store = ProgressStore(resumed_config.progress_file, resumed_config.output_file)
        await store.save_checkpoint([a for a in clean.articles if a.thread_id in (1, 3)])

        client = StubCompletionService()
        resumed = await ArticleGenerator(config=resumed_config, client=client).generate_articles(
            flagged_threads
        )

        assert _comparable(resumed) == _comparable(clean)
        assert sorted(resumed.thread_ids) == [1, 2, 3, 4]
        assert len(client.article_requests) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [b"{truncated", b"\x80\x81 garbage"])
    async def test_corrupt_checkpoint_starts_from_scratch(self, make_thread, config, stub_client, content):
        config.analysis_dir.mkdir(parents=True)
        config.progress_file.write_bytes(content)

        batch = await ArticleGenerator(config=config, client=stub_client).generate_articles(
            _threads(make_thread, 2)
        )

        assert batch.thread_ids == [1, 2]

    @pytest.mark.asyncio
    async def test_duplicate_input_threads_analyzed_once(self, make_thread, config, stub_client):
        threads = _threads(make_thread, 2)

        batch = await ArticleGenerator(config=config, client=stub_client).generate_articles(
            threads + [threads[0]]
        )

        assert batch.thread_ids == [1, 2]
        assert len(stub_client.article_requests) == 2

    @pytest.mark.asyncio
    async def test_checkpoint_save_failure_does_not_stop_job(self, make_thread, config, stub_client):
        generator = ArticleGenerator(config=config, client=stub_client)
        generator.store.save_checkpoint = AsyncMock(return_value=False)

        batch = await generator.generate_articles(_threads(make_thread, 2))

        assert batch.thread_ids == [1, 2]
        assert generator.store.save_checkpoint.await_count == 2

    @pytest.mark.asyncio
    async def test_commit_failure_propagates_and_keeps_checkpoint(self, make_thread, config, stub_client):
        generator = ArticleGenerator(config=config, client=stub_client)

        failing_commit = AsyncMock(side_effect=OutputCommitError("read-only fs"))

        with patch.object(generator.store, "commit_output", failing_commit):
            with pytest.raises(OutputCommitError, match="read-only fs"):
                await generator.generate_articles(_threads(make_thread, 2))

        assert not config.output_file.exists()
        assert config.progress_file.exists()

        # Re-run resumes from the checkpoint instead of re-analyzing
        rerun_client = StubCompletionService()
        batch = await ArticleGenerator(config=config, client=rerun_client).generate_articles(
            _threads(make_thread, 2)
        )
        assert batch.thread_ids == [1, 2]
        assert rerun_client.requests == []

    @pytest.mark.asyncio
    async def test_stop_request_keeps_checkpoint_and_skips_commit(self, make_thread, config, stub_client):
        generator = ArticleGenerator(config=config, client=stub_client)

        def stop_after_first(thread_id):
            generator.request_stop()

        batch = await generator.generate_articles(_threads(make_thread, 3), on_progress=stop_after_first)

        assert batch.thread_ids == [1]
        assert config.progress_file.exists()
        assert not config.output_file.exists()

    @pytest.mark.asyncio
    async def test_ten_post_thread_scenario(self, make_thread, tmp_path):
        config = ArticleGeneratorConfig(analysis_percentage=30, data_dir=tmp_path)
        client = StubCompletionService(classification_reply="2/3")

        batch = await ArticleGenerator(config=config, client=client).generate_articles(
            [make_thread(9, [f"p{i}" for i in range(10)])]
        )

        record = batch.articles[0]
        assert record.metadata.analyzed_posts == 3
        assert len(client.classification_requests) == 1
        assert record.antisemitic_stats.analyzed_comments == 3
        assert record.antisemitic_stats.antisemitic_comments == 2
        assert record.antisemitic_stats.percentage == pytest.approx(66.67)
        assert batch.batch_stats.average_antisemitic_percentage == pytest.approx(66.67)
