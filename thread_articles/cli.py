#!/usr/bin/env python
"""
thread-articles CLI - generate articles, inspect results, country stats.

Usage:
    thread-articles generate threads.json            # Run (or resume) a job
    thread-articles generate threads.json --percentage 50 --temperature 0.5
    thread-articles show                             # Print committed articles
    thread-articles geo threads.json                 # Country statistics
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .article_generator import ArticleGenerator
from .config import ArticleGeneratorConfig
from .errors import ConfigurationError, OutputCommitError
from .geo_analyzer import GeoAnalyzer
from .logging_utils import configure_safe_logging
from .progress_store import ProgressStore
from .thread_source import load_threads


def _build_config(args) -> ArticleGeneratorConfig:
    return ArticleGeneratorConfig.from_env(
        analysis_percentage=getattr(args, "percentage", None),
        temperature=getattr(args, "temperature", None),
        data_dir=args.data_dir,
    )


def cmd_generate(args) -> int:
    """Run the article job over a thread file."""
    config = _build_config(args)
    configure_safe_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_file=config.analysis_dir / "generator.log",
    )
    threads = load_threads(args.threads)

    generator = ArticleGenerator(config=config)
    done = 0

    def on_progress(thread_id: str) -> None:
        nonlocal done
        done += 1
        print(f"  [{done}] thread {thread_id} done", flush=True)

    batch = asyncio.run(generator.generate_articles(threads, on_progress=on_progress))

    stats = batch.batch_stats
    print("-" * 50)
    print(f"Threads:              {stats.total_threads}")
    print(f"Analyzed posts:       {stats.total_analyzed_posts}")
    print(f"Avg flagged percent:  {stats.average_antisemitic_percentage:.2f}%")
    print(f"Output:               {config.output_file}")
    return 0


def cmd_show(args) -> int:
    """Print the committed articles."""
    config = _build_config(args)
    store = ProgressStore(config.progress_file, config.output_file)
    batch = store.load_output()
    if batch is None:
        print(f"No articles found at {config.output_file}")
        return 1

    for record in batch.articles:
        stats = record.antisemitic_stats
        print(f"\n## {record.headline} (thread {record.thread_id})")
        print(record.article)
        print(
            f"   flagged {stats.antisemitic_comments}/{stats.analyzed_comments} "
            f"({stats.percentage:.2f}%), sampled {record.metadata.analyzed_posts}"
            f"/{record.metadata.total_posts} posts"
        )
    print()
    return 0


def cmd_geo(args) -> int:
    """Print country statistics for a thread file."""
    threads = load_threads(args.threads)
    result = GeoAnalyzer().analyze(threads)

    print(f"\nUnique countries: {result.total_unique_countries}")
    print(
        f"Posts with location: {result.metadata.posts_with_location}"
        f"/{result.metadata.total_posts_analyzed}\n"
    )
    print(f"{'Country':<30} {'Posts':<8} {'Posters':<8}")
    print("-" * 48)
    for c in result.most_common_countries:
        print(f"{c.name:<30} {c.post_count:<8} {c.unique_posters:<8}")
    print()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thread-articles",
        description="Turn discussion threads into headline + article summaries",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Analysis data root (default: THREAD_ARTICLES_DATA_DIR or ./data)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    gen = subparsers.add_parser("generate", help="Generate (or resume) articles for a thread file")
    gen.add_argument("threads", type=Path, help="JSON file of threads")
    gen.add_argument("--percentage", type=float, help="Share of posts to sample per thread")
    gen.add_argument("--temperature", type=float, help="Article generation temperature")
    gen.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    gen.set_defaults(func=cmd_generate)

    show = subparsers.add_parser("show", help="Print committed articles")
    show.set_defaults(func=cmd_show)

    geo = subparsers.add_parser("geo", help="Country statistics for a thread file")
    geo.add_argument("threads", type=Path, help="JSON file of threads")
    geo.set_defaults(func=cmd_geo)

    return parser


def main(argv=None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except OutputCommitError as e:
        print(f"Failed to commit output: {e}", file=sys.stderr)
        return 1
    except (ConfigurationError, ValueError) as e:  # includes pydantic ValidationError
        print(f"Invalid configuration or input: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Could not read input: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
