"""
Challenge endpoints: send, list, answer.

A challenge is five words ("un chat sur une table") plus at least three
forbidden words the drawer may not use in the prompt. Words are checked and
normalized here before the request goes out:

- trimmed and lowercased, empty forbidden words dropped
- at least 3 forbidden words, all words distinct, both target words set
- accents folded and anything outside a-z removed
"""
from __future__ import annotations

import json
from typing import Any, List, Sequence

import config
from game_gateway import GameServerClient, ParseError
from game_models import Challenge
from game_protocol import AnswerRequest, ChallengeRequest
from logger import setup_logger


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)

MIN_FORBIDDEN_WORDS = 3

_ACCENTS = str.maketrans("àâäéèêëïîôùûüÿçñ", "aaaeeeeiiouuuycn")


class ChallengeValidationError(ValueError):
    pass


def normalize_word(word: str) -> str:
    folded = word.lower().translate(_ACCENTS)
    return "".join(c for c in folded if "a" <= c <= "z")


def validate_words(input1: str, input2: str, forbidden_words: Sequence[str]) -> List[str]:
    """
    Check the words of a new challenge. Returns [input1, input2, *forbidden],
    cleaned but not yet normalized.
    """
    clean1 = input1.strip().lower()
    clean2 = input2.strip().lower()
    forbidden = [w.strip().lower() for w in forbidden_words]
    forbidden = [w for w in forbidden if w]

    if len(forbidden) < MIN_FORBIDDEN_WORDS:
        raise ChallengeValidationError(f"{MIN_FORBIDDEN_WORDS} forbidden words are required")

    words = [clean1, clean2] + forbidden
    if len(set(words)) != len(words):
        raise ChallengeValidationError("All words must be different")

    if not clean1 or not clean2:
        raise ChallengeValidationError("The words to guess cannot be empty")

    return words


def _challenge_list(data: Any, where: str) -> List[Challenge]:
    """Accept a bare list or an {"items": [...]} envelope."""
    if isinstance(data, dict):
        data = data.get("items") or []
    if not isinstance(data, list):
        raise ParseError(f"Expected a challenge list from {where}, got {type(data).__name__}")
    return [Challenge.from_json(item) for item in data if isinstance(item, dict)]


class ChallengeApiService:
    def __init__(self, client: GameServerClient) -> None:
        self.client = client

    async def send_challenge(
        self,
        session_id: str,
        article1: str,
        input1: str,
        preposition: str,
        article2: str,
        input2: str,
        forbidden_words: Sequence[str],
    ) -> Challenge:
        """Validate, normalize and send a challenge. Raises ChallengeValidationError before any request."""
        clean1, clean2, *forbidden = validate_words(input1, input2, forbidden_words)

        word1 = normalize_word(clean1)
        word2 = normalize_word(clean2)
        if not word1 or not word2:
            raise ChallengeValidationError("The words to guess must contain letters")

        body = ChallengeRequest(
            first_word=article1.lower(),
            second_word=word1,
            third_word=preposition.lower(),
            fourth_word=article2.lower(),
            fifth_word=word2,
            forbidden_words=[normalize_word(w) for w in forbidden],
        )
        logger.info(f"[ChallengeApi] Sending challenge: {json.dumps(body.model_dump(), ensure_ascii=False)}")

        data = await self.client.post(f"/game_sessions/{session_id}/challenges", body.model_dump())
        challenge = Challenge.from_json(data)
        if not challenge.game_session_id:
            challenge = challenge.copy_with(game_session_id=str(session_id))
        return challenge

    async def get_my_challenges(self, session_id: str) -> List[Challenge]:
        return await self._list(f"/game_sessions/{session_id}/myChallenges")

    async def get_my_challenges_to_guess(self, session_id: str) -> List[Challenge]:
        return await self._list(f"/game_sessions/{session_id}/myChallengesToGuess")

    async def list_session_challenges(self, session_id: str) -> List[Challenge]:
        return await self._list(f"/game_sessions/{session_id}/challenges")

    async def answer_challenge(self, session_id: str, challenge_id: str, answer: str, is_resolved: bool) -> None:
        body = AnswerRequest(answer=answer, is_resolved=is_resolved)
        logger.info(f"[ChallengeApi] ANSWER challenge={challenge_id} resolved={body.is_resolved}")
        await self.client.post(
            f"/game_sessions/{session_id}/challenges/{challenge_id}/answer",
            body.model_dump(),
        )

    async def _list(self, path: str) -> List[Challenge]:
        data = await self.client.get_json(path)
        challenges = _challenge_list(data, f"GET {path}")
        logger.debug(f"[ChallengeApi] {len(challenges)} challenge(s) from {path}")
        return challenges
