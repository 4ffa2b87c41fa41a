"""Board and state builders shared by the Mergers tests.

Boards are drawn as lists of strings, one string per row and one
space-separated token per tile:

    T L W A F C I   placed tile in Tower, Luxor, Worldwide, American,
                    Festival, Continental or Imperial
    x               placed tile with no chain
    0-5             tile in that player's rack
    -               tile removed from play
    .               undrawn tile
"""

from typing import Dict, List, Optional

from mergers.board_manager import BoardManager
from mergers.models import (
    BuildingStage,
    Chain,
    GamePhase,
    GameState,
    Hotel,
    Merger,
    Player,
    RulesOptions,
    empty_stock_map,
)

CHAIN_CODES: Dict[str, Chain] = {
    "T": Chain.TOWER,
    "L": Chain.LUXOR,
    "W": Chain.WORLDWIDE,
    "A": Chain.AMERICAN,
    "F": Chain.FESTIVAL,
    "C": Chain.CONTINENTAL,
    "I": Chain.IMPERIAL,
}


def parse_board(rows: List[str]) -> List[List[Hotel]]:
    """Build a hotel grid from the string notation above."""
    grid: List[List[Hotel]] = []
    for r, row in enumerate(rows):
        hotels = []
        for c, token in enumerate(row.split()):
            hotel = Hotel(id=BoardManager.hotel_id(r, c))
            if token in CHAIN_CODES:
                hotel.has_been_placed = True
                hotel.chain = CHAIN_CODES[token]
            elif token == "x":
                hotel.has_been_placed = True
            elif token.isdigit():
                hotel.drawn_by_player = token
            elif token == "-":
                hotel.has_been_removed = True
            elif token != ".":
                raise ValueError(f"Unknown board token {token!r}")
            hotels.append(hotel)
        grid.append(hotels)
    return grid


def make_player(
    player_id: str = "0",
    money: int = 6000,
    stocks: Optional[Dict[Chain, int]] = None,
) -> Player:
    holdings = empty_stock_map()
    holdings.update(stocks or {})
    return Player(id=player_id, money=money, stocks=holdings)


def make_state(
    board: List[str],
    num_players: int = 2,
    current_player: str = "0",
    current_phase: GamePhase = GamePhase.BUILDING,
    current_stage: Optional[BuildingStage] = BuildingStage.PLACE_HOTEL,
    stocks: Optional[Dict[str, Dict[Chain, int]]] = None,
    money: Optional[Dict[str, int]] = None,
    available: Optional[Dict[Chain, int]] = None,
    merger: Optional[Merger] = None,
    last_placed_hotel: Optional[str] = None,
    rng_seed: int = 0,
    **option_overrides,
) -> GameState:
    """Construct a GameState around a drawn board.

    Shares held by players are taken out of the available pool so stock is
    conserved; ``available`` overrides individual pool counts afterwards.
    """
    hotels = parse_board(board)
    options = RulesOptions(
        rows=len(hotels), columns=len(hotels[0]), **option_overrides
    )
    stocks = stocks or {}
    money = money or {}
    players = [
        make_player(
            str(i),
            money=money.get(str(i), options.starting_money),
            stocks=stocks.get(str(i)),
        )
        for i in range(num_players)
    ]

    pool = empty_stock_map(options.stocks_per_chain)
    for player in players:
        for chain, count in player.stocks.items():
            pool[chain] -= count
    if available:
        pool.update(available)

    if current_phase != GamePhase.BUILDING:
        current_stage = None

    return GameState(
        hotels=hotels,
        players=players,
        availableStocks=pool,
        currentPhase=current_phase,
        currentStage=current_stage,
        currentPlayer=current_player,
        lastPlacedHotel=last_placed_hotel,
        merger=merger,
        rngSeed=rng_seed,
        rulesOptions=options,
    )


def total_shares(state: GameState, chain: Chain) -> int:
    """Shares of ``chain`` held by players plus those left in the pool."""
    held = sum(p.stocks.get(chain, 0) for p in state.players)
    return held + state.available_stocks[chain]
