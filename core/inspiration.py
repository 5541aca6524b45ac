# =============================================================================
# core/inspiration.py  —  Random Inspirational Quote
# =============================================================================
# The one tool with no upstream at all: pick a quote from a fixed list.
# =============================================================================

import random

QUOTES: tuple[str, ...] = (
    "The only way to do great work is to love what you do. — Steve Jobs",
    "Innovation distinguishes between a leader and a follower. — Steve Jobs",
    "Life is what happens when you're busy making other plans. — John Lennon",
    "The future belongs to those who believe in the beauty of their dreams. — Eleanor Roosevelt",
    "It is during our darkest moments that we must focus to see the light. — Aristotle",
)


def random_quote(rng: random.Random | None = None) -> str:
    """Return one quote from QUOTES, chosen uniformly at random."""
    return (rng or random).choice(QUOTES)
