"""Heuristic ticket complexity score (0.1 - 1.0)."""
from __future__ import annotations

from portal_estimator.estimation.catalog import COMPLEXITY_INDICATORS

BASE_SCORE = 0.3
MIN_SCORE = 0.1
MAX_SCORE = 1.0

INDICATOR_WEIGHTS: dict[str, float] = {
    "high": 0.15,
    "medium": 0.08,
    "low": -0.10,
}

# (description length threshold, bonus)
LENGTH_BONUSES: tuple[tuple[int, float], ...] = (
    (1000, 0.1),
    (2000, 0.1),
)


def matched_indicators(subject: str, description: str) -> dict[str, list[str]]:
    """Complexity indicator phrases found in the ticket text, per level."""
    text = f"{subject} {description}".lower()
    return {
        level: [phrase for phrase in phrases if phrase in text]
        for level, phrases in COMPLEXITY_INDICATORS.items()
    }


def score_complexity(subject: str, description: str) -> float:
    """Score how much investigation or cross-system work a ticket needs.

    Starts at 0.3, adds 0.15 per high and 0.08 per medium indicator,
    subtracts 0.10 per low indicator, and adds 0.1 each for descriptions
    longer than 1000 and 2000 characters.
    """
    score = BASE_SCORE
    for level, phrases in matched_indicators(subject, description).items():
        score += len(phrases) * INDICATOR_WEIGHTS[level]

    for threshold, bonus in LENGTH_BONUSES:
        if len(description) > threshold:
            score += bonus

    return max(MIN_SCORE, min(MAX_SCORE, score))
