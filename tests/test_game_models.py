"""Tests for Player / GameSession values."""

from __future__ import annotations

from game_models import Challenge, GameSession, Player, as_bool, as_id, parse_datetime


def _room(*players: Player, **kwargs) -> GameSession:
    return GameSession(id="s1", players=list(players), **kwargs)


class TestPlayer:
    def test_equality_is_by_id(self) -> None:
        """Should treat two snapshots of the same player as equal."""
        a = Player(id="p1", name="Ana", color="red")
        b = Player(id="p1", name="", color="blue", role="drawer")

        assert a == b
        assert hash(a) == hash(b)
        assert a != Player(id="p2", name="Ana")

    def test_copy_with_returns_new_value(self) -> None:
        p = Player(id="p1", name="Ana")

        q = p.copy_with(role="guesser")

        assert p.role is None
        assert q.role == "guesser"
        assert q.is_guesser and not q.is_drawer

    def test_from_json_camel_and_snake(self) -> None:
        camel = Player.from_json({"id": 5, "name": "A", "isHost": True, "hasGuessed": True, "challengesSent": "2"})
        snake = Player.from_json({"player_id": "5", "username": "A", "is_host": "true", "has_guessed": 1})

        assert camel.id == snake.id == "5"
        assert camel.is_host and snake.is_host
        assert camel.has_guessed and snake.has_guessed
        assert camel.challenges_sent == 2

    def test_to_json_omits_unset_team_and_role(self) -> None:
        data = Player(id="p1", name="Ana").to_json()

        assert "color" not in data and "role" not in data
        assert data["isHost"] is False


class TestGameSession:
    def test_ready_to_start_needs_four_players(self) -> None:
        three = _room(Player(id="1"), Player(id="2"), Player(id="3"))

        assert not three.is_ready_to_start
        assert three.copy_with(players=three.players + [Player(id="4")]).is_ready_to_start

    def test_active_and_finished(self) -> None:
        assert _room(status="drawing").is_active
        assert not _room(status="lobby").is_active
        assert _room(status="finished").is_finished
        assert _room(status="drawing", game_phase="finished").is_finished

    def test_host_id_wins_over_player_flag(self) -> None:
        """Should trust host_id when known, even if a player claims the flag."""
        session = _room(Player(id="p1", is_host=True), Player(id="p2"), host_id="p2")

        assert session.is_player_host("p2")
        assert not session.is_player_host("p1")

    def test_host_flag_used_without_host_id(self) -> None:
        session = _room(Player(id="p1", is_host=True), Player(id="p2"))

        assert session.is_player_host("p1")
        assert not session.is_player_host("p2")
        assert not session.is_player_host("nobody")

    def test_team_players_and_find(self) -> None:
        session = _room(Player(id="1", color="red"), Player(id="2", color="blue"), Player(id="3", color="red"))

        assert [p.id for p in session.get_team_players("red")] == ["1", "3"]
        assert session.find_player(2).id == "2"
        assert session.find_player("9") is None

    def test_to_json_includes_optional_fields(self) -> None:
        data = _room(Player(id="1"), game_phase="drawing", host_id="1").to_json()

        assert data["gamePhase"] == "drawing"
        assert data["hostId"] == "1"
        assert data["teamScores"] == {"red": 100, "blue": 100}


class TestChallenge:
    def test_from_server_word_keys(self) -> None:
        """Should map first_word..fifth_word onto the phrase and accept image_path."""
        challenge = Challenge.from_json(
            {
                "id": 4,
                "gameSessionId": "s1",
                "first_word": "un",
                "second_word": "chat",
                "third_word": "sur",
                "fourth_word": "une",
                "fifth_word": "table",
                "forbidden_words": '["griffe", "poil", "miaou"]',
                "image_path": "https://img/4.png",
                "is_resolved": False,
                "challenger_id": 7,
            }
        )

        assert challenge.id == "4"
        assert challenge.full_phrase == "un chat sur une table"
        assert challenge.forbidden_words == ["griffe", "poil", "miaou"]
        assert challenge.image_url == "https://img/4.png"
        assert challenge.challenger_id == "7"
        assert challenge.is_resolved is False and not challenge.is_completed

    def test_legacy_keys_and_defaults(self) -> None:
        challenge = Challenge.from_json({"_id": "c1", "input1": "chat", "input2": "lit", "forbidden_words": "poil"})

        assert challenge.full_phrase == "un chat sur une lit"
        assert challenge.forbidden_words == ["poil"]
        assert challenge.is_resolved is None
        assert not challenge.has_image

    def test_prompt_forbidden_word_check(self) -> None:
        challenge = Challenge(id="c1", input1="chat", input2="table", forbidden_words=["poil"])

        assert challenge.prompt_contains_forbidden_words("Un CHAT endormi")
        assert challenge.prompt_contains_forbidden_words("beaucoup de poils")
        assert not challenge.prompt_contains_forbidden_words("un felin sur un meuble")


class TestCoercion:
    def test_as_id(self) -> None:
        assert as_id(3) == "3"
        assert as_id(3.0) == "3"
        assert as_id(" x ") == "x"
        assert as_id("") is None
        assert as_id(None) is None

    def test_as_bool(self) -> None:
        assert as_bool("yes") and as_bool("1") and as_bool(True)
        assert not as_bool("false") and not as_bool(0)

    def test_parse_datetime(self) -> None:
        assert parse_datetime("2024-01-02T03:04:05Z").tzinfo is not None
        assert parse_datetime("nope") is None
        assert parse_datetime(None) is None
