"""
Country statistics over already-fetched threads.

Counts posts and unique posters per country flag. Posts need both a country
code and a country name to count. The OP is counted once more on top of
the reply list, using the thread's own text and the first post's location
fields, when those fields are present.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .models import Post, Thread, now_millis

MAX_COUNTRIES = 6
ANONYMOUS_POSTER = "anon"


class CountryStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str
    name: str
    post_count: int = Field(default=0, alias="postCount")
    unique_posters: int = Field(default=0, alias="uniquePosters")
    last_seen: int = Field(default_factory=now_millis, alias="lastSeen")


class GeoMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_posts_analyzed: int = Field(alias="totalPostsAnalyzed")
    posts_with_location: int = Field(alias="postsWithLocation")


class GeoAnalyzerResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timestamp: int = Field(default_factory=now_millis)
    thread_id: int = Field(alias="threadId")
    post_id: int = Field(alias="postId")
    total_unique_countries: int = Field(alias="totalUniqueCountries")
    most_common_countries: List[CountryStats] = Field(alias="mostCommonCountries")
    most_unique_countries: List[CountryStats] = Field(alias="mostUniqueCountries")
    metadata: GeoMetadata


@dataclass
class _Tally:
    countries: Dict[str, CountryStats] = field(default_factory=dict)
    posters: Dict[str, Set[str]] = field(default_factory=dict)
    total_posts: int = 0
    posts_with_location: int = 0
    first_located: Optional[Tuple[int, int]] = None

    def record(self, thread_no: int, post: Post) -> None:
        if not (post.country and post.country_name):
            return
        stats = self.countries.get(post.country)
        if stats is None:
            stats = CountryStats(code=post.country, name=post.country_name)
            self.countries[post.country] = stats
        posters = self.posters.setdefault(post.country, set())

        posters.add(post.id or ANONYMOUS_POSTER)
        stats.post_count += 1
        stats.unique_posters = len(posters)
        stats.last_seen = now_millis()

        self.posts_with_location += 1
        if self.first_located is None:
            self.first_located = (thread_no, post.no)


def _op_post(thread: Thread) -> Post:
    first = thread.posts[0] if thread.posts else None
    return Post(
        no=thread.no,
        resto=0,
        time=thread.time,
        name=thread.name,
        com=thread.com,
        country=first.country if first else None,
        country_name=first.country_name if first else None,
        id=first.id if first else None,
    )


class GeoAnalyzer:
    """Tracks country statistics and participation across threads."""

    name = "geo"
    description = "Tracks country statistics and participation across threads"

    def __init__(self, max_countries: int = MAX_COUNTRIES):
        self.max_countries = max_countries

    def analyze(self, threads: Sequence[Thread]) -> GeoAnalyzerResult:
        tally = _Tally()

        for thread in threads:
            if not thread.posts:
                continue

            op = _op_post(thread)
            if op.country and op.country_name:
                tally.total_posts += 1
                tally.record(thread.no, op)

            for post in thread.posts:
                tally.total_posts += 1
                tally.record(thread.no, post)

        stats = list(tally.countries.values())
        most_common = sorted(stats, key=lambda s: s.post_count, reverse=True)
        most_unique = sorted(stats, key=lambda s: s.unique_posters, reverse=True)

        if tally.first_located:
            thread_id, post_id = tally.first_located
        else:
            thread_id = threads[0].no if threads else 0
            post_id = threads[0].posts[0].no if threads and threads[0].posts else 0

        return GeoAnalyzerResult(
            thread_id=thread_id,
            post_id=post_id,
            total_unique_countries=len(stats),
            most_common_countries=most_common[: self.max_countries],
            most_unique_countries=most_unique[: self.max_countries],
            metadata=GeoMetadata(
                total_posts_analyzed=tally.total_posts,
                posts_with_location=tally.posts_with_location,
            ),
        )
