"""
Client-side game models: Player, GameSession and Challenge.

All are immutable. Every change (team join, role assignment, enrichment)
produces a new value through copy_with(). Identity is the id alone, so two
snapshots of the same player compare equal even when name/role differ.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
import json
from typing import Any, Dict, List, Mapping, Optional

import config
from game_protocol import ACTIVE_STATUSES, STATUS_FINISHED, STATUS_LOBBY, ROLE_DRAWER, ROLE_GUESSER


def first_present(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Value of the first key present with a non-None value."""
    for k in keys:
        v = data.get(k)
        if v is not None:
            return v
    return default


def as_id(value: Any) -> Optional[str]:
    """Coerce a wire id (number or string) to str; None/empty stays None."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    sid = str(value).strip()
    return sid or None


def as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def default_team_scores() -> Dict[str, int]:
    return {"red": config.INITIAL_TEAM_SCORE, "blue": config.INITIAL_TEAM_SCORE}


@dataclass(frozen=True, eq=False)
class Player:
    id: str
    name: str = ""
    color: Optional[str] = None  # "red" | "blue"
    role: Optional[str] = None  # "drawer" | "guesser"
    is_host: bool = False
    challenges_sent: int = 0
    has_drawn: bool = False
    has_guessed: bool = False

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Player":
        return cls(
            id=as_id(first_present(data, "id", "_id", "player_id", "playerId")) or "",
            name=str(first_present(data, "name", "username", default="") or ""),
            color=first_present(data, "color", "team"),
            role=first_present(data, "role"),
            is_host=as_bool(first_present(data, "isHost", "is_host", default=False)),
            challenges_sent=as_int(first_present(data, "challengesSent", "challenges_sent", default=0)),
            has_drawn=as_bool(first_present(data, "hasDrawn", "has_drawn", default=False)),
            has_guessed=as_bool(first_present(data, "hasGuessed", "has_guessed", default=False)),
        )

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "isHost": self.is_host,
            "challengesSent": self.challenges_sent,
            "hasDrawn": self.has_drawn,
            "hasGuessed": self.has_guessed,
        }
        if self.color is not None:
            data["color"] = self.color
        if self.role is not None:
            data["role"] = self.role
        return data

    def copy_with(self, **changes: Any) -> "Player":
        return replace(self, **changes)

    @property
    def is_drawer(self) -> bool:
        return self.role == ROLE_DRAWER

    @property
    def is_guesser(self) -> bool:
        return self.role == ROLE_GUESSER

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Player):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True, eq=False)
class GameSession:
    id: str
    status: str = STATUS_LOBBY  # open set, see game_protocol
    players: List[Player] = field(default_factory=list)
    team_scores: Dict[str, int] = field(default_factory=default_team_scores)
    current_turn: int = 0
    game_phase: Optional[str] = None
    host_id: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None

    def copy_with(self, **changes: Any) -> "GameSession":
        return replace(self, **changes)

    @property
    def is_ready_to_start(self) -> bool:
        return len(self.players) == config.MAX_PLAYERS

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_finished(self) -> bool:
        return self.status == STATUS_FINISHED or self.game_phase == STATUS_FINISHED

    def find_player(self, player_id: Any) -> Optional[Player]:
        pid = as_id(player_id)
        for p in self.players:
            if p.id == pid:
                return p
        return None

    def get_team_players(self, color: str) -> List[Player]:
        return [p for p in self.players if p.color == color]

    def is_player_host(self, player_id: Any) -> bool:
        pid = as_id(player_id)
        if self.host_id is not None:
            return pid == self.host_id
        player = self.find_player(pid)
        return bool(player and player.is_host)

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "status": self.status,
            "players": [p.to_json() for p in self.players],
            "teamScores": dict(self.team_scores),
            "currentTurn": self.current_turn,
        }
        if self.game_phase is not None:
            data["gamePhase"] = self.game_phase
        if self.host_id is not None:
            data["hostId"] = self.host_id
        if self.created_at is not None:
            data["createdAt"] = self.created_at.isoformat()
        if self.started_at is not None:
            data["startedAt"] = self.started_at.isoformat()
        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameSession):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


def _word_list(value: Any) -> List[str]:
    """forbidden_words arrives as a list or as a JSON-encoded list in a string."""
    if value is None:
        return []
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            return [value]
        if not isinstance(decoded, list):
            return [value]
        value = decoded
    if isinstance(value, list):
        return [str(w) for w in value]
    return [str(value)]


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass(frozen=True, eq=False)
class Challenge:
    """
    One challenge card: "<article1> <input1> <preposition> <article2> <input2>".

    The server names the five words first_word..fifth_word; older payloads use
    article1/input1/... Both are accepted.
    """

    id: str
    game_session_id: str = ""
    article1: str = "un"
    input1: str = ""
    preposition: str = "sur"
    article2: str = "une"
    input2: str = ""
    forbidden_words: List[str] = field(default_factory=list)
    prompt: Optional[str] = None
    image_url: Optional[str] = None
    answer: Optional[str] = None
    is_resolved: Optional[bool] = None
    drawer_id: Optional[str] = None
    guesser_id: Optional[str] = None
    challenger_id: Optional[str] = None
    current_phase: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Challenge":
        resolved = first_present(data, "is_resolved", "isResolved")
        return cls(
            id=as_id(first_present(data, "id", "_id", "challengeId")) or "",
            game_session_id=as_id(first_present(data, "gameSessionId", "game_session_id")) or "",
            article1=str(first_present(data, "article1", "article_1", "first_word", default="un")),
            input1=str(first_present(data, "input1", "input_1", "second_word", default="")),
            preposition=str(first_present(data, "preposition", "third_word", default="sur")),
            article2=str(first_present(data, "article2", "article_2", "fourth_word", default="une")),
            input2=str(first_present(data, "input2", "input_2", "fifth_word", default="")),
            forbidden_words=_word_list(first_present(data, "forbidden_words", "forbiddenWords")),
            prompt=_optional_text(first_present(data, "prompt")),
            image_url=_optional_text(first_present(data, "imageUrl", "image_url", "image_path")),
            answer=_optional_text(first_present(data, "answer")),
            is_resolved=None if resolved is None else as_bool(resolved),
            drawer_id=as_id(first_present(data, "drawerId", "drawer_id")),
            guesser_id=as_id(first_present(data, "guesserId", "guesser_id")),
            challenger_id=as_id(first_present(data, "challengerId", "challenger_id")),
            current_phase=_optional_text(first_present(data, "currentPhase", "current_phase")),
            created_at=parse_datetime(first_present(data, "createdAt", "created_at")),
            completed_at=parse_datetime(first_present(data, "completedAt", "completed_at")),
        )

    def copy_with(self, **changes: Any) -> "Challenge":
        return replace(self, **changes)

    @property
    def full_phrase(self) -> str:
        return f"{self.article1} {self.input1} {self.preposition} {self.article2} {self.input2}"

    @property
    def target_words(self) -> List[str]:
        return [self.input1, self.input2]

    @property
    def is_completed(self) -> bool:
        return self.is_resolved is True

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)

    def prompt_contains_forbidden_words(self, prompt: str) -> bool:
        """True when the prompt mentions a target word or a forbidden word."""
        text = prompt.lower()
        return any(w and w.lower() in text for w in self.target_words + self.forbidden_words)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Challenge):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
