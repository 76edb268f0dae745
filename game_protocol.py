"""
Game protocol (shared): request bodies and well-known state names.

Request bodies are pydantic models so a malformed call fails before it
reaches the network.

State names:
- status and game_phase are an OPEN set on the server side. The constants
  here are the values the client knows how to route; any other string must
  be carried through untouched.
- Both fields overlap in meaning and the server is inconsistent about which
  one moves first, so routing checks both.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator
from typing import FrozenSet, List


# Session status / phase values known to the client
STATUS_LOBBY = "lobby"
STATUS_CHALLENGE = "challenge"
STATUS_DRAWING = "drawing"
STATUS_GUESSING = "guessing"
STATUS_PLAYING = "playing"
STATUS_FINISHED = "finished"

ACTIVE_STATUSES: FrozenSet[str] = frozenset({STATUS_CHALLENGE, STATUS_DRAWING, STATUS_GUESSING, STATUS_PLAYING})

TEAM_RED = "red"
TEAM_BLUE = "blue"
TEAM_COLORS = (TEAM_RED, TEAM_BLUE)

ROLE_DRAWER = "drawer"
ROLE_GUESSER = "guesser"


class JoinRequest(BaseModel):
    color: str = Field(..., description="Team to join: 'red' or 'blue'")

    @field_validator("color")
    @classmethod
    def _known_team(cls, v: str) -> str:
        color = (v or "").strip().lower()
        if color not in TEAM_COLORS:
            raise ValueError(f"unknown team color: {v!r}")
        return color


class DrawRequest(BaseModel):
    prompt: str = Field(..., min_length=1, description="Image generation prompt")
    real: str = Field("yes", description="'yes' asks the server for a real generation")


class Credentials(BaseModel):
    name: str = Field(..., min_length=1)
    password: str


class ChallengeRequest(BaseModel):
    """Body of POST /game_sessions/{id}/challenges, words already normalized."""

    first_word: str
    second_word: str = Field(..., min_length=1)
    third_word: str
    fourth_word: str
    fifth_word: str = Field(..., min_length=1)
    forbidden_words: List[str] = Field(..., min_length=3)


class AnswerRequest(BaseModel):
    answer: str
    is_resolved: bool
