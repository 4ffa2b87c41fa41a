"""End-of-game eligibility and settlement."""

from __future__ import annotations

import logging
from typing import List

from ..board_manager import BoardManager
from ..models import Chain, GameOver, GameState, Merger, Score
from .bonuses import award_bonuses

logger = logging.getLogger(__name__)


def game_can_be_declared_over(state: GameState) -> bool:
    """True once every chain is safe, or any chain has grown past the end size."""
    options = state.rules_options
    sizes = [s for s in BoardManager.chain_sizes(state).values() if s > 0]
    if not sizes:
        return False
    if all(s > options.unmergeable_size for s in sizes):
        return True
    return any(s > options.game_end_size for s in sizes)


def settle_game(state: GameState, declared_by: str) -> GameOver:
    """Pay final bonuses, liquidate all stock, and rank the players.

    Chains are paid smallest first. The snapshots recorded for each chain use
    the same shape as a merger record.
    """
    sizes = BoardManager.chain_sizes(state)
    chains: List[Chain] = sorted(
        BoardManager.chains_on_board(state),
        key=lambda c: (sizes[c], list(Chain).index(c)),
    )

    final_mergers: List[Merger] = []
    for chain in chains:
        stock_counts = {p.id: p.stocks.get(chain, 0) for p in state.players}
        price = BoardManager.price_of_stock(state, chain)
        bonuses = award_bonuses(state, chain, event="game_end")
        final_mergers.append(
            Merger(
                chainToMerge=chain,
                stockPrice=price,
                stockCounts=stock_counts,
                bonuses=bonuses,
            )
        )

    for chain in chains:
        stock_price = BoardManager.price_of_stock(state, chain)
        if stock_price is None:
            continue
        for player in state.players:
            num_stock = player.stocks.get(chain, 0)
            player.money += num_stock * stock_price
            player.stocks[chain] = 0
            state.available_stocks[chain] += num_stock

    ranked = sorted(state.players, key=lambda p: p.money, reverse=True)
    top_money = ranked[0].money
    winners = [p.id for p in ranked if p.money == top_money]

    game_over = GameOver(
        declaredBy=declared_by,
        winner=winners[0] if len(winners) == 1 else None,
        winners=winners if len(winners) > 1 else None,
        scores=[
            Score(id=p.id, money=p.money, winner=p.money == top_money)
            for p in ranked
        ],
        finalMergers=final_mergers,
    )
    logger.info(
        "Game over declared by %s; winners %s with $%d",
        declared_by,
        winners,
        top_money,
    )
    return game_over
