"""Fuzzy text matching for re-finding questions whose ids drifted"""

from typing import Optional, Sequence

SIMILARITY_THRESHOLD = 0.7


def levenshtein_distance(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def string_similarity(a: str, b: str) -> float:
    """Dice-style score derived from edit distance, in [0, 1]."""
    longer, shorter = (a, b) if len(a) > len(b) else (b, a)
    if not longer:
        return 1.0
    distance = levenshtein_distance(longer, shorter)
    return (2.0 * (len(longer) - distance)) / (2.0 * len(longer))


def fuzzy_match(query: str, candidates: Sequence[str]) -> Optional[str]:
    """
    Match ``query`` against ``candidates``.

    Exact (case-insensitive) match first, then substring containment in
    either direction, then the most similar candidate scoring above 0.7.

    Returns:
        The matching candidate as given, or None
    """
    normalized = (query or "").lower().strip()
    if not normalized:
        return None

    for candidate in candidates:
        if candidate.lower() == normalized:
            return candidate

    for candidate in candidates:
        lowered = candidate.lower()
        if lowered and (lowered in normalized or normalized in lowered):
            return candidate

    best_match = None
    best_score = 0.0
    for candidate in candidates:
        score = string_similarity(normalized, candidate.lower())
        if score > best_score and score > SIMILARITY_THRESHOLD:
            best_score = score
            best_match = candidate
    return best_match
