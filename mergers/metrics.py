"""Prometheus metrics for the Mergers rules service.

Counters are module-level so the engine and the HTTP host can record
telemetry without managing their own metric instances. Labels are kept to
small fixed sets (move types, outcomes, player counts).
"""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Histogram


MOVES_APPLIED: Final[Counter] = Counter(
    "mergers_moves_total",
    "Total moves submitted to the engine, labeled by move_type and outcome.",
    labelnames=("move_type", "outcome"),
)

MOVE_LATENCY: Final[Histogram] = Histogram(
    "mergers_move_latency_seconds",
    "Time spent applying a single move, labeled by move_type.",
    labelnames=("move_type",),
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5),
)

MERGERS_COMPLETED: Final[Counter] = Counter(
    "mergers_mergers_completed_total",
    "Total mergers fully resolved, labeled by how many chains were merged away.",
    labelnames=("chains_merged",),
)

BONUS_MONEY_PAID: Final[Counter] = Counter(
    "mergers_bonus_money_paid_total",
    "Total majority/minority bonus money paid out, labeled by event.",
    labelnames=("event",),
)

GAMES_STARTED: Final[Counter] = Counter(
    "mergers_games_started_total",
    "Total games set up, labeled by num_players.",
    labelnames=("num_players",),
)

GAMES_COMPLETED: Final[Counter] = Counter(
    "mergers_games_completed_total",
    "Total games declared over, labeled by num_players and outcome.",
    labelnames=("num_players", "outcome"),
)


def observe_move(move_type: str, outcome: str, duration_seconds: float) -> None:
    """Record one move evaluation."""
    MOVES_APPLIED.labels(move_type, outcome).inc()
    MOVE_LATENCY.labels(move_type).observe(duration_seconds)
