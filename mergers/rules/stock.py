"""Stock purchase and merger swap/sell.

Both operations truncate over-sized requests to what is legal instead of
rejecting them: a player asking for more shares than they can afford, than
the pool holds, or than the per-turn cap allows simply gets fewer.
"""

from __future__ import annotations

from typing import Dict, Mapping, Tuple

from ..board_manager import BoardManager
from ..models import Chain, GameState, Player, SwapAndSell


def round_down_to_even(n: int) -> int:
    return n - (n % 2)


def buy_stock(
    state: GameState, player: Player, order: Mapping[Chain, int]
) -> Dict[Chain, int]:
    """Fill a purchase ``order`` for ``player`` and return what was bought.

    Chains are processed in table order. Each chain's price is computed once
    from its current size and does not rise while shares are bought.
    """
    purchases_remaining = state.rules_options.max_stock_purchase
    bought: Dict[Chain, int] = {}

    for chain in Chain:
        requested = order.get(chain, 0)
        if not requested:
            continue
        stock_price = BoardManager.price_of_stock(state, chain)
        if stock_price is None:
            continue

        stocks_to_buy = min(
            requested, state.available_stocks[chain], purchases_remaining
        )
        count = 0
        while stocks_to_buy > 0 and player.money >= stock_price:
            player.stocks[chain] += 1
            player.money -= stock_price
            state.available_stocks[chain] -= 1
            stocks_to_buy -= 1
            purchases_remaining -= 1
            count += 1
        if count:
            bought[chain] = count

    return bought


def clamp_swap_and_sell(
    state: GameState,
    player: Player,
    merging_chain: Chain,
    surviving_chain: Chain,
    swap: int,
    sell: int,
) -> Tuple[int, int]:
    """Return the legal ``(swap, sell)`` nearest to what was requested.

    Two merging shares buy one surviving share, so the swap is capped by
    twice the surviving pool and rounded down to an even number. The sell is
    capped by what is left after the swap.
    """
    holdings = player.stocks.get(merging_chain, 0)

    to_swap = max(swap, 0)
    to_swap = min(to_swap, holdings)
    to_swap = min(to_swap, state.available_stocks[surviving_chain] * 2)
    to_swap = round_down_to_even(to_swap)

    to_sell = max(sell, 0)
    to_sell = min(to_sell, holdings - to_swap)

    return to_swap, to_sell


def swap_and_sell_stock(
    state: GameState,
    player: Player,
    merging_chain: Chain,
    surviving_chain: Chain,
    stock_price: int,
    swap: int,
    sell: int,
) -> SwapAndSell:
    """Exchange and sell ``player``'s merging shares; the rest are kept.

    ``stock_price`` is the merging chain's price captured before the merger
    changed any tiles.
    """
    to_swap, to_sell = clamp_swap_and_sell(
        state, player, merging_chain, surviving_chain, swap, sell
    )

    player.stocks[merging_chain] -= to_swap
    state.available_stocks[merging_chain] += to_swap
    player.stocks[surviving_chain] += to_swap // 2
    state.available_stocks[surviving_chain] -= to_swap // 2

    player.stocks[merging_chain] -= to_sell
    state.available_stocks[merging_chain] += to_sell
    player.money += to_sell * stock_price

    return SwapAndSell(swap=to_swap, sell=to_sell)
