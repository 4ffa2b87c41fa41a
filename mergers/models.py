"""
Pydantic Models for Mergers Game State
Field aliases mirror the camelCase shape used by the web client
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
from enum import Enum

from . import config


class Chain(str, Enum):
    """Hotel chain enumeration, in fixed table order"""
    TOWER = "Tower"
    LUXOR = "Luxor"
    WORLDWIDE = "Worldwide"
    AMERICAN = "American"
    FESTIVAL = "Festival"
    CONTINENTAL = "Continental"
    IMPERIAL = "Imperial"


class GamePhase(str, Enum):
    """Game phase enumeration"""
    BUILDING = "buildingPhase"
    CHOOSE_SURVIVING_CHAIN = "chooseSurvivingChainPhase"
    CHOOSE_CHAIN_TO_MERGE = "chooseChainToMergePhase"
    MERGER = "mergerPhase"
    GAME_OVER = "gameOverPhase"


class BuildingStage(str, Enum):
    """Stages a player walks through during their building turn"""
    PLACE_HOTEL = "placeHotelStage"
    CHOOSE_NEW_CHAIN = "chooseNewChainStage"
    BUY_STOCK = "buyStockStage"
    DECLARE_GAME_OVER = "declareGameOverStage"
    DRAW_HOTELS = "drawHotelsStage"


class GameStatus(str, Enum):
    """Game status enumeration"""
    ACTIVE = "active"
    FINISHED = "finished"


class MoveType(str, Enum):
    """Every move a player can submit"""
    PLACE_HOTEL = "placeHotel"
    CHOOSE_NEW_CHAIN = "chooseNewChain"
    BUY_STOCK = "buyStock"
    DECLARE_GAME_OVER = "declareGameOver"
    DRAW_HOTELS = "drawHotels"
    CHOOSE_SURVIVING_CHAIN = "chooseSurvivingChain"
    CHOOSE_CHAIN_TO_MERGE = "chooseChainToMerge"
    SWAP_AND_SELL_STOCK = "swapAndSellStock"


def empty_stock_map(count: int = 0) -> Dict[Chain, int]:
    """Return a chain -> count map with every chain present."""
    return {chain: count for chain in Chain}


def complete_stock_map(value: Dict[Chain, int]) -> Dict[Chain, int]:
    """Fill chains missing from a client-supplied map with 0, in table order."""
    return {chain: value.get(chain, 0) for chain in Chain}


class RulesOptions(BaseModel):
    """Tunable rule parameters, stored with the game"""
    rows: int = Field(config.DEFAULT_NUM_ROWS, ge=1, le=config.DEFAULT_NUM_ROWS)
    columns: int = Field(config.DEFAULT_NUM_COLUMNS, ge=1)
    starting_money: int = Field(config.STARTING_MONEY, alias="startingMoney", ge=0)
    stocks_per_chain: int = Field(
        config.STOCKS_PER_CHAIN, alias="stocksPerChain", ge=0
    )
    rack_size: int = Field(config.RACK_SIZE, alias="rackSize", ge=0)
    max_stock_purchase: int = Field(
        config.MAX_STOCK_PURCHASE, alias="maxStockPurchase", ge=0
    )
    unmergeable_size: int = Field(
        config.UNMERGEABLE_SIZE, alias="unmergeableSize", ge=0
    )
    game_end_size: int = Field(config.GAME_END_SIZE, alias="gameEndSize", ge=0)

    class Config:
        populate_by_name = True


class Hotel(BaseModel):
    """A single hotel tile on the grid.

    ``drawn_by_player`` is set only while the tile sits in a rack; once the
    tile is placed the owner moves to ``placed_by``.
    """
    id: str
    has_been_placed: bool = Field(False, alias="hasBeenPlaced")
    drawn_by_player: Optional[str] = Field(None, alias="drawnByPlayer")
    placed_by: Optional[str] = Field(None, alias="placedBy")
    chain: Optional[Chain] = None
    has_been_removed: bool = Field(False, alias="hasBeenRemoved")

    class Config:
        populate_by_name = True


class Player(BaseModel):
    """Player state"""
    id: str
    money: int = config.STARTING_MONEY
    stocks: Dict[Chain, int] = Field(default_factory=empty_stock_map)

    class Config:
        populate_by_name = True

    @field_validator("stocks")
    @classmethod
    def _every_chain_held(cls, value: Dict[Chain, int]) -> Dict[Chain, int]:
        return complete_stock_map(value)


class SwapAndSell(BaseModel):
    """A player's resolved exchange during one chain's merger"""
    swap: int = 0
    sell: int = 0


class Merger(BaseModel):
    """Transient record of a merger in progress.

    The same shape doubles as the per-chain payout snapshot recorded at
    game end, in which case only ``chain_to_merge``, ``stock_price``,
    ``stock_counts`` and ``bonuses`` are filled in.
    """
    triggered_by: Optional[str] = Field(None, alias="triggeredBy")
    triggering_hotel: Optional[str] = Field(None, alias="triggeringHotel")
    surviving_chain: Optional[Chain] = Field(None, alias="survivingChain")
    chain_to_merge: Optional[Chain] = Field(None, alias="chainToMerge")
    merging_chains: List[Chain] = Field(
        default_factory=list, alias="mergingChains"
    )
    merged_chains: List[Chain] = Field(default_factory=list, alias="mergedChains")
    stock_price: Optional[int] = Field(None, alias="stockPrice")
    stock_counts: Optional[Dict[str, int]] = Field(None, alias="stockCounts")
    bonuses: Optional[Dict[str, int]] = None
    swap_and_sells: Optional[Dict[str, SwapAndSell]] = Field(
        None, alias="swapAndSells"
    )

    class Config:
        populate_by_name = True


class Score(BaseModel):
    """Final money for one player"""
    id: str
    money: int
    winner: bool


class GameOver(BaseModel):
    """Terminal record written when a player ends the game"""
    declared_by: str = Field(alias="declaredBy")
    winner: Optional[str] = None
    winners: Optional[List[str]] = None
    scores: List[Score]
    final_mergers: List[Merger] = Field(
        default_factory=list, alias="finalMergers"
    )

    class Config:
        populate_by_name = True


class Move(BaseModel):
    """Move representation.

    Only the arguments relevant to ``type`` are read:
    - ``placeHotel``: ``hotel`` (omit to pass with no playable tiles)
    - ``chooseNewChain`` / ``chooseSurvivingChain`` /
      ``chooseChainToMerge``: ``chain``
    - ``buyStock``: ``order``
    - ``declareGameOver``: ``is_game_over``
    - ``swapAndSellStock``: ``swap`` and ``sell``
    """
    type: MoveType
    player: str
    hotel: Optional[str] = None
    chain: Optional[Chain] = None
    order: Dict[Chain, int] = Field(default_factory=dict)
    is_game_over: Optional[bool] = Field(None, alias="isGameOver")
    swap: int = Field(0, ge=0)
    sell: int = Field(0, ge=0)
    move_number: Optional[int] = Field(None, alias="moveNumber")

    class Config:
        populate_by_name = True

    @field_validator("order")
    @classmethod
    def _order_counts_non_negative(cls, value: Dict[Chain, int]) -> Dict[Chain, int]:
        for chain, count in value.items():
            if count < 0:
                raise ValueError(f"cannot order a negative number of {chain.value}")
        return value


class GameState(BaseModel):
    """Complete game state"""
    id: str = "mergers"
    hotels: List[List[Hotel]]
    players: List[Player]
    available_stocks: Dict[Chain, int] = Field(alias="availableStocks")
    current_phase: GamePhase = Field(alias="currentPhase")
    current_stage: Optional[BuildingStage] = Field(None, alias="currentStage")
    current_player: str = Field(alias="currentPlayer")
    last_placed_hotel: Optional[str] = Field(None, alias="lastPlacedHotel")
    last_move: str = Field("", alias="lastMove")
    merger: Optional[Merger] = None
    game_status: GameStatus = Field(GameStatus.ACTIVE, alias="gameStatus")
    game_over: Optional[GameOver] = Field(None, alias="gameOver")
    move_history: List[Move] = Field(default_factory=list, alias="moveHistory")
    rng_seed: int = Field(0, alias="rngSeed")
    draw_count: int = Field(0, alias="drawCount")
    rules_options: RulesOptions = Field(
        default_factory=RulesOptions, alias="rulesOptions"
    )

    class Config:
        populate_by_name = True

    @field_validator("available_stocks")
    @classmethod
    def _every_chain_pooled(cls, value: Dict[Chain, int]) -> Dict[Chain, int]:
        return complete_stock_map(value)

    def get_player(self, player_id: str) -> Optional[Player]:
        """Return the player with ``player_id`` or ``None``."""
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_ids(self) -> List[str]:
        """Player ids in table order."""
        return [p.id for p in self.players]


class MoveResult(BaseModel):
    """Outcome of evaluating a move against a state"""
    valid: bool
    next_state: Optional[GameState] = Field(None, alias="nextState")
    state_hash: Optional[str] = Field(None, alias="stateHash")
    validation_error: Optional[str] = Field(None, alias="validationError")
    error_code: Optional[str] = Field(None, alias="errorCode")

    class Config:
        populate_by_name = True
