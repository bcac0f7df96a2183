"""Prometheus metrics for the Hex AI service.

This module centralises counters and histograms so that /ai/move and the
session endpoint can record lightweight telemetry without each handler
having to manage its own metric instances. Metrics are labeled by
strategy id and difficulty key so they can be filtered per opponent.
"""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Gauge, Histogram


AI_MOVE_REQUESTS: Final[Counter] = Counter(
    "hex_ai_move_requests_total",
    (
        "Total number of move requests, labeled by ai_id, difficulty "
        "and outcome."
    ),
    labelnames=("ai_id", "difficulty", "outcome"),
)

AI_MOVE_LATENCY: Final[Histogram] = Histogram(
    "hex_ai_move_latency_seconds",
    "Latency of move requests in seconds, labeled by ai_id and difficulty.",
    labelnames=("ai_id", "difficulty"),
    # Covers the 100ms easy presets up to the 15s extreme preset.
    buckets=(
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.0,
        5.0,
        10.0,
        20.0,
    ),
)

AI_SESSION_CACHE_SIZE: Final[Gauge] = Gauge(
    "hex_ai_session_cache_size",
    "Current number of engine sessions held by this process.",
)

MCTS_SIMULATIONS: Final[Counter] = Counter(
    "hex_ai_mcts_simulations_total",
    "Total MCTS simulations run, labeled by ai_id.",
    labelnames=("ai_id",),
)


def observe_ai_move_start(ai_id: str, difficulty: str) -> tuple[str, str]:
    """Prepare metric label values for a new move request.

    Keeps the label-shape logic in one place so every handler reports the
    same label values.
    """

    return ai_id, str(difficulty)


def record_simulations(ai_id: str, ai: object) -> None:
    """Add the simulation count of the AI's last search, if it ran one."""
    simulations = getattr(ai, "last_simulations", 0)
    if simulations:
        MCTS_SIMULATIONS.labels(ai_id).inc(simulations)
