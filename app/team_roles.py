"""
Team balancing and initial role assignment.

Rules:
- 2 teams (red/blue), 2 players per team
- a new player goes to the smaller team, red on ties
- per team: first player = drawer, second = guesser
"""

from __future__ import annotations

from typing import Dict, List

import config
from game_models import GameSession, Player
from game_protocol import ROLE_DRAWER, ROLE_GUESSER, TEAM_BLUE, TEAM_COLORS, TEAM_RED
from logger import setup_logger


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)


def team_counts(session: GameSession) -> Dict[str, int]:
    return {color: len(session.get_team_players(color)) for color in TEAM_COLORS}


def team_is_full(session: GameSession, color: str) -> bool:
    return len(session.get_team_players(color)) >= config.PLAYERS_PER_TEAM


def available_team_color(session: GameSession) -> str:
    counts = team_counts(session)
    red, blue = counts[TEAM_RED], counts[TEAM_BLUE]
    if red <= blue and red < config.PLAYERS_PER_TEAM:
        return TEAM_RED
    if blue < config.PLAYERS_PER_TEAM:
        return TEAM_BLUE
    # Both full: the server rejects the join and says so
    return TEAM_RED


def all_players_have_roles(session: GameSession) -> bool:
    return all(bool(p.role) for p in session.players)


def are_roles_valid(session: GameSession) -> bool:
    for color in TEAM_COLORS:
        team = session.get_team_players(color)
        if len(team) != config.PLAYERS_PER_TEAM:
            return False
        drawers = sum(1 for p in team if p.role == ROLE_DRAWER)
        guessers = sum(1 for p in team if p.role == ROLE_GUESSER)
        if drawers != 1 or guessers != 1:
            return False
    return True


def assign_initial_roles(session: GameSession) -> GameSession:
    """New session with roles set; unchanged when the room is not full."""
    if not session.is_ready_to_start:
        logger.warning(f"[TeamRoles] Session {session.id} not ready ({len(session.players)} players)")
        return session

    updated: List[Player] = []
    for color in TEAM_COLORS:
        team = session.get_team_players(color)
        if len(team) != config.PLAYERS_PER_TEAM:
            logger.warning(f"[TeamRoles] Team {color} has {len(team)} players, roles left as-is")
            updated.extend(team)
            continue
        updated.append(team[0].copy_with(role=ROLE_DRAWER))
        updated.append(team[1].copy_with(role=ROLE_GUESSER))
        logger.info(f"[TeamRoles] Team {color}: drawer={team[0].name or team[0].id} guesser={team[1].name or team[1].id}")

    # Players without a team are kept, after the teams
    teamless = [p for p in session.players if p.color not in TEAM_COLORS]
    return session.copy_with(players=updated + teamless)
