from dataclasses import dataclass
from typing import List, Optional, Tuple

WIN_DELTA = 25
LOSS_DELTA = -15
RESIGN_DELTA = -20


@dataclass(frozen=True)
class StatsDelta:
    identity: str
    wins: int = 0
    losses: int = 0
    rating: int = 0
    games_played: int = 1


def _pair(winner: Optional[str], loser: Optional[str], loser_delta: int) -> List[StatsDelta]:
    if not winner or not loser:
        return []
    return [
        StatsDelta(identity=winner, wins=1, rating=WIN_DELTA),
        StatsDelta(identity=loser, losses=1, rating=loser_delta),
    ]


def game_over_deltas(winner: Optional[str], loser: Optional[str]) -> List[StatsDelta]:
    """+25 to the winner and -15 to the loser; nothing unless both are known.

    The two increments are independent, not a zero-sum exchange.
    """
    return _pair(winner, loser, LOSS_DELTA)


def resignation_deltas(winner: Optional[str], resigner: Optional[str]) -> List[StatsDelta]:
    """+25 to the winner and -20 to the player who resigned."""
    return _pair(winner, resigner, RESIGN_DELTA)


def as_increments(delta: StatsDelta) -> Tuple[str, dict]:
    return delta.identity, {
        'wins': delta.wins,
        'losses': delta.losses,
        'rating': delta.rating,
        'games_played': delta.games_played,
    }
