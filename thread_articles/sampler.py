"""Post sampling for cost control.

Only a share of each thread is sent to the completion service. The subset
is uniformly random and drawn without replacement; no seed is required, so
two calls on the same thread may pick different posts.
"""

import math
import random
from typing import List, Optional

from .models import Post, Thread


def sample_size(total: int, percentage: float) -> int:
    """Number of posts to analyze: ceil(total * percentage / 100)."""
    if not 0 < percentage <= 100:
        raise ValueError(f"percentage must be in (0, 100], got {percentage}")
    if total <= 0:
        return 0
    return math.ceil(total * percentage / 100)


def sample_posts(
    thread: Thread,
    percentage: float,
    rng: Optional[random.Random] = None,
) -> List[Post]:
    """
    Pick a random subset of a thread's posts.

    Args:
        thread: Thread to sample from
        percentage: Share of posts to keep, in (0, 100]
        rng: Optional random source (tests pass a seeded one)

    Returns:
        ceil(len(posts) * percentage / 100) distinct posts; every post (in
        original order) when percentage is 100; [] for a thread without posts
    """
    posts = thread.posts or []
    k = sample_size(len(posts), percentage)
    if k == 0:
        return []
    if k >= len(posts):
        return list(posts)
    return (rng or random).sample(posts, k)
