"""Tests for the client read model: audit messages, views and the price card."""

from mergers.models import BuildingStage, Chain, GameOver, GamePhase, Score
from mergers.view import (
    active_players,
    build_view,
    game_over_message,
    price_guide,
    rename_players,
    winner_message,
)
from tests.helpers import make_state


def _game_over(winner=None, winners=None):
    return GameOver(
        declaredBy="0",
        winner=winner,
        winners=winners,
        scores=[
            Score(id="1", money=13200, winner=True),
            Score(id="0", money=9600, winner=winners is not None),
        ],
    )


class TestMessages:
    def test_rename_players(self):
        names = {"0": "Ada", "1": "Grace"}
        assert (
            rename_players("Player 0 swaps 2 Tower for 1 Luxor", names)
            == "Ada swaps 2 Tower for 1 Luxor"
        )
        assert rename_players("Player 1 plays 3-B", names) == "Grace plays 3-B"

    def test_rename_leaves_longer_ids_alone(self):
        assert rename_players("Player 10 plays 1-A", {"1": "Grace"}) == (
            "Player 10 plays 1-A"
        )
        names = {"1": "Grace", "10": "Linus"}
        assert rename_players("Player 10 plays 1-A", names) == "Linus plays 1-A"

    def test_single_winner(self):
        assert winner_message(_game_over(winner="1")) == "Player 1 wins!"

    def test_tie(self):
        message = winner_message(_game_over(winners=["1", "0"]), {"0": "Ada"})
        assert message == "Player 1 & Ada tied!"

    def test_game_over_message_lists_scores(self):
        assert game_over_message(_game_over(winner="1")) == (
            "Player 1 wins! Scores: Player 1: $13200, Player 0: $9600"
        )


class TestBuildView:
    def test_active_player_in_building_phase(self):
        state = make_state(["T T 0"], current_stage=BuildingStage.BUY_STOCK)
        assert active_players(state) == {"0": "buyStockStage"}

    def test_active_player_in_merger_phase(self):
        state = make_state(["T T 0"], current_phase=GamePhase.MERGER)
        assert active_players(state) == {"0": "mergerPhase"}

    def test_nobody_acts_after_game_over(self):
        state = make_state(["T T 0"], current_phase=GamePhase.GAME_OVER)
        assert active_players(state) == {}

    def test_chain_summaries(self):
        state = make_state(["T T . L L L"], stocks={"0": {Chain.LUXOR: 2}})
        view = build_view(state)
        summaries = {s.chain: s for s in view.chains}
        assert len(view.chains) == 7
        assert summaries[Chain.TOWER].size == 2
        assert summaries[Chain.TOWER].price == 200
        assert summaries[Chain.LUXOR].available == 23
        assert summaries[Chain.IMPERIAL].price is None

    def test_rack_only_for_a_known_viewer(self):
        state = make_state(["T T T 0 L L L", "1 . . . . . ."], unmergeable_size=2)
        view = build_view(state, viewer="0")
        assert [(h.id, h.playable, h.permanently_unplayable) for h in view.rack] == [
            ("4-A", False, True)
        ]
        assert build_view(state).rack is None
        assert build_view(state, viewer="9").rack is None

    def test_names_are_substituted_into_last_move(self):
        state = make_state(["T T 0"])
        state.last_move = "Player 0 plays 3-A"
        view = build_view(state, names={"0": "Ada"})
        assert view.last_move == "Ada plays 3-A"
        assert view.message is None

    def test_game_over_message_is_included(self):
        state = make_state(["T T 0"], current_phase=GamePhase.GAME_OVER)
        state.game_over = _game_over(winner="1")
        assert build_view(state).message.startswith("Player 1 wins!")

    def test_serializes_with_camel_case_aliases(self):
        data = build_view(make_state(["T T 0"])).model_dump(by_alias=True)
        assert data["currentPlayer"] == "0"
        assert data["activePlayers"] == {"0": "placeHotelStage"}


class TestPriceGuide:
    def test_has_a_row_per_size_bucket(self):
        rows = price_guide()
        assert [r.size for r in rows] == [
            "2", "3", "4", "5", "6-10", "11-20", "21-30", "31-40", "41+",
        ]

    def test_smallest_bucket(self):
        first = price_guide()[0]
        assert [t.price for t in first.tiers] == [200, 300, 400]
        assert [t.majority_bonus for t in first.tiers] == [2000, 3000, 4000]
        assert [t.minority_bonus for t in first.tiers] == [1000, 1500, 2000]
        assert first.tiers[0].chains == [Chain.TOWER, Chain.LUXOR]

    def test_largest_bucket(self):
        last = price_guide()[-1]
        assert [t.price for t in last.tiers] == [1000, 1100, 1200]
