"""Majority / minority shareholder bonuses.

When a chain is merged away, or when the game ends, the largest and second
largest holders of its stock collect bonuses worth ten and five times the
share price. Ties split the relevant bonus evenly, rounded up to the next
$100 per recipient, so the total paid out can exceed the nominal bonus.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from ..board_manager import BoardManager
from ..metrics import BONUS_MONEY_PAID
from ..models import Chain, GameState, Player

logger = logging.getLogger(__name__)


def round_up_to_nearest_100(total: int, recipients: int = 1) -> int:
    """Split ``total`` across ``recipients`` and round each share up to $100.

    Integer-only so the split is exact for any player count.
    """
    if recipients <= 0:
        raise ValueError("recipients must be positive")
    return -(-total // (100 * recipients)) * 100


def players_in_desc_order_of_stock(state: GameState, chain: Chain) -> List[Player]:
    """Players sorted by holdings in ``chain``; ties keep table order."""
    return sorted(state.players, key=lambda p: p.stocks.get(chain, 0), reverse=True)


def players_in_majority(state: GameState, chain: Chain) -> List[Player]:
    players = players_in_desc_order_of_stock(state, chain)
    if not players:
        return []
    majority_count = players[0].stocks.get(chain, 0)
    if majority_count == 0:
        return []
    return [p for p in players if p.stocks.get(chain, 0) == majority_count]


def players_in_minority(state: GameState, chain: Chain) -> List[Player]:
    """Players tied for second place.

    Empty when the runner-up count equals the leader's (a tie at the top
    takes both bonuses) or is zero.
    """
    players = players_in_desc_order_of_stock(state, chain)
    if len(players) < 2:
        return []
    majority_count = players[0].stocks.get(chain, 0)
    minority_count = players[1].stocks.get(chain, 0)
    if majority_count == minority_count or minority_count == 0:
        return []
    return [p for p in players if p.stocks.get(chain, 0) == minority_count]


def get_bonuses(state: GameState, chain: Chain) -> Dict[str, int]:
    """Compute the bonus owed to each player for ``chain`` without paying it.

    Only players who receive money appear in the result.
    """
    majority_bonus = BoardManager.majority_bonus(state, chain)
    minority_bonus = BoardManager.minority_bonus(state, chain)
    bonuses: Dict[str, int] = {}

    majority = players_in_majority(state, chain)
    if len(majority) == 1:
        leader = majority[0]
        bonuses[leader.id] = majority_bonus

        minority = players_in_minority(state, chain)
        if not minority:
            # sole holder takes both
            bonuses[leader.id] += minority_bonus
        elif len(minority) == 1:
            bonuses[minority[0].id] = minority_bonus
        else:
            each = round_up_to_nearest_100(minority_bonus, len(minority))
            for p in minority:
                bonuses[p.id] = each
    elif len(majority) > 1:
        each = round_up_to_nearest_100(majority_bonus + minority_bonus, len(majority))
        for p in majority:
            bonuses[p.id] = each

    return bonuses


def award_bonuses(
    state: GameState, chain: Chain, event: str = "merger"
) -> Dict[str, int]:
    """Pay the bonuses for ``chain`` in one step and return what was paid.

    ``event`` labels the payout in metrics (``"merger"`` or ``"game_end"``).
    """
    bonuses = get_bonuses(state, chain)
    for player_id, amount in bonuses.items():
        player = state.get_player(player_id)
        if player is not None:
            player.money += amount
    if bonuses:
        BONUS_MONEY_PAID.labels(event).inc(sum(bonuses.values()))
        logger.debug("Paid %s bonuses: %s", chain.value, bonuses)
    return bonuses
