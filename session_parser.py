"""
Session payload parsing.

The game server returns sessions in several shapes:
- standard: a `players` list (elements carry `id` or `player_id`)
- team: no `players`, but `red_team` / `blue_team` lists whose members are
  either player objects or bare ids
- anything else: parsed best-effort with the standard rules

Each shape is a strategy with a `can_parse` predicate. GameSessionParser
tries them in priority order; the first match wins and the standard strategy
is the fallback. Unknown shapes never raise, a session with an empty player
list is preferred over breaking the poll loop.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Mapping, Optional, Protocol

import config
from game_gateway import ParseError
from game_models import (
    GameSession,
    Player,
    as_id,
    as_int,
    default_team_scores,
    first_present,
    parse_datetime,
)
from game_protocol import STATUS_LOBBY, TEAM_BLUE, TEAM_RED
from logger import setup_logger


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)


HOST_ID_KEYS = ("host_id", "hostId", "created_by", "createdBy")


def extract_host_id(payload: Mapping[str, Any]) -> Optional[str]:
    """Authoritative host id from a raw session payload, None when absent."""
    return as_id(first_present(payload, *HOST_ID_KEYS))


def count_challenges(payload: Mapping[str, Any]) -> Optional[Dict[str, int]]:
    """
    challenger_id -> number of challenges sent.

    None when the payload carries no `challenges` list, so callers can keep
    the wire value of challengesSent.
    """
    challenges = payload.get("challenges")
    if not isinstance(challenges, list):
        return None
    counts: Counter = Counter()
    for ch in challenges:
        if not isinstance(ch, Mapping):
            continue
        cid = as_id(first_present(ch, "challenger_id", "challengerId"))
        if cid is not None:
            counts[cid] += 1
    return dict(counts)


def _parse_scores(payload: Mapping[str, Any]) -> Dict[str, int]:
    scores = default_team_scores()
    raw = first_present(payload, "teamScores", "team_scores")
    if isinstance(raw, Mapping):
        for color in (TEAM_RED, TEAM_BLUE):
            if raw.get(color) is not None:
                scores[color] = as_int(raw.get(color), scores[color])
    return scores


def _player_from_member(member: Any, color: Optional[str] = None) -> Optional[Player]:
    """Player from a list element: a player object or a bare id."""
    if isinstance(member, Mapping):
        player = Player.from_json(member)
        if color is not None:
            player = player.copy_with(color=color)
        return player if player.id else None
    if not isinstance(member, (str, int, float)) or isinstance(member, bool):
        return None
    pid = as_id(member)
    if pid is None:
        return None
    # Bare id: name is filled in later by enrichment
    return Player(id=pid, name="", color=color)


def _as_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def build_session(payload: Mapping[str, Any], players: List[Player]) -> GameSession:
    """Assemble a GameSession from shape-independent fields plus parsed players."""
    counts = count_challenges(payload)
    if counts is not None:
        players = [p.copy_with(challenges_sent=counts.get(p.id, 0)) for p in players]

    return GameSession(
        id=as_id(first_present(payload, "id", "_id", "gameSessionId", "game_session_id")) or "",
        status=str(first_present(payload, "status", default=STATUS_LOBBY)),
        players=players,
        team_scores=_parse_scores(payload),
        current_turn=as_int(first_present(payload, "currentTurn", "current_turn", default=0)),
        game_phase=_as_text(first_present(payload, "gamePhase", "game_phase")),
        host_id=extract_host_id(payload),
        created_at=parse_datetime(first_present(payload, "createdAt", "created_at")),
        started_at=parse_datetime(first_present(payload, "startedAt", "started_at")),
    )


class SessionParserStrategy(Protocol):
    """
    One payload shape.
    """

    name: str

    def can_parse(self, payload: Mapping[str, Any]) -> bool:
        ...

    def parse(self, payload: Mapping[str, Any]) -> GameSession:
        ...


class StandardFormatParser:
    name = "standard"

    def can_parse(self, payload: Mapping[str, Any]) -> bool:
        return isinstance(payload.get("players"), list)

    def parse(self, payload: Mapping[str, Any]) -> GameSession:
        raw_players = payload.get("players")
        if not isinstance(raw_players, list):
            raw_players = []
        players = [p for p in (_player_from_member(m) for m in raw_players) if p is not None]
        return build_session(payload, players)


class TeamFormatParser:
    name = "team"

    def can_parse(self, payload: Mapping[str, Any]) -> bool:
        return "players" not in payload and ("red_team" in payload or "blue_team" in payload)

    def parse(self, payload: Mapping[str, Any]) -> GameSession:
        players: List[Player] = []
        for key, color in (("red_team", TEAM_RED), ("blue_team", TEAM_BLUE)):
            members = payload.get(key)
            if not isinstance(members, list):
                continue
            for member in members:
                player = _player_from_member(member, color)
                if player is not None:
                    players.append(player)
        return build_session(payload, players)


class GameSessionParser:
    def __init__(self, strategies: Optional[List[SessionParserStrategy]] = None) -> None:
        self._fallback: SessionParserStrategy = StandardFormatParser()
        if strategies is None:
            strategies = [self._fallback, TeamFormatParser()]
        self._strategies: List[SessionParserStrategy] = list(strategies)

    def register(self, strategy: SessionParserStrategy, index: Optional[int] = None) -> None:
        """Add a shape; appended (lowest priority) unless an index is given."""
        if not (getattr(strategy, "name", "") or "").strip():
            raise ValueError("Parser strategy name is empty")
        if index is None:
            self._strategies.append(strategy)
        else:
            self._strategies.insert(index, strategy)

    def names(self) -> List[str]:
        return [s.name for s in self._strategies]

    def select(self, payload: Mapping[str, Any]) -> SessionParserStrategy:
        for strategy in self._strategies:
            if strategy.can_parse(payload):
                return strategy
        logger.warning(f"[SessionParser] No parser matched keys={sorted(payload.keys())}, using standard")
        return self._fallback

    def parse(self, payload: Any) -> GameSession:
        if not isinstance(payload, Mapping):
            raise ParseError(f"Session payload must be an object, got {type(payload).__name__}")
        strategy = self.select(payload)
        logger.debug(f"[SessionParser] Parsing with '{strategy.name}' format")
        return strategy.parse(payload)
