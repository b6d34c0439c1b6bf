"""
Round scoring for individual and team play.

Each scoring unit (a player in 1v1, a team in 2v2) earns one point for
each of the following it holds alone:

- most captured cards
- most captured diamonds
- most captured sevens

plus one point for the seven of diamonds and one per chkobba (clean
sweep). Ties, and maxima of zero, award nothing.
"""

import logging
from typing import List

from .constants import DIAMONDS, SEVEN, SEVEN_OF_DIAMONDS_ID, TEAM_A, TEAM_B, TEAM_NAMES
from .models import Card, Player, RoomState, RoundSummary, ScoreLine

logger = logging.getLogger(__name__)

AWARD_CARDS = 'Most cards'
AWARD_DIAMONDS = 'Most diamonds'
AWARD_SEVENS = 'Most sevens'
AWARD_SEVEN_OF_DIAMONDS = 'Seven of diamonds'


def tally_captured(line: ScoreLine, captured: List[Card]):
    """Add a pile of captured cards to a score line's raw stats."""
    line.cards += len(captured)
    line.diamonds += sum(1 for card in captured if card.suit == DIAMONDS)
    line.sevens += sum(1 for card in captured if card.rank == SEVEN)
    if any(card.id == SEVEN_OF_DIAMONDS_ID for card in captured):
        line.seven_of_diamonds = True


def award_category(lines: List[ScoreLine], attr: str, label: str):
    """Give one point to the unit with the strictly unique, positive maximum of attr."""
    if not lines:
        return
    best = max(getattr(line, attr) for line in lines)
    if best == 0:
        return
    leaders = [line for line in lines if getattr(line, attr) == best]
    if len(leaders) == 1:
        leaders[0].points_earned += 1
        leaders[0].awards.append(label)


def apply_awards(lines: List[ScoreLine]):
    award_category(lines, 'cards', AWARD_CARDS)
    award_category(lines, 'diamonds', AWARD_DIAMONDS)
    award_category(lines, 'sevens', AWARD_SEVENS)
    for line in lines:
        if line.seven_of_diamonds:
            line.points_earned += 1
            line.awards.append(AWARD_SEVEN_OF_DIAMONDS)
        # chkobba bonuses are uncapped
        line.points_earned += line.chkobba


def build_player_lines(players: List[Player]) -> List[ScoreLine]:
    lines = []
    for player in players:
        line = ScoreLine(key=player.id, name=player.name, chkobba=player.chkobba_count)
        tally_captured(line, player.captured)
        lines.append(line)
    return lines


def build_team_lines(players: List[Player]) -> List[ScoreLine]:
    teams = {
        key: ScoreLine(key=key, name=TEAM_NAMES[key], team_key=key)
        for key in (TEAM_A, TEAM_B)
    }
    for player in players:
        line = teams[TEAM_B if player.team == TEAM_B else TEAM_A]
        line.members.append(player.name)
        line.member_ids.append(player.id)
        line.chkobba += player.chkobba_count
        tally_captured(line, player.captured)
    for line in teams.values():
        if line.members:
            line.name = f"{TEAM_NAMES[line.key]} ({' & '.join(line.members)})"
    return list(teams.values())


def score_round(state: RoomState) -> RoundSummary:
    """
    Score the finished round and add the points to the match totals.

    In team mode the team total is mirrored onto every member's score.

    Args:
        state: Room whose players' captured piles are complete

    Returns:
        RoundSummary with one ScoreLine per scoring unit
    """
    if state.is_team_mode:
        lines = build_team_lines(state.players)
        apply_awards(lines)
        for line in lines:
            state.team_scores[line.key] = state.team_scores.get(line.key, 0) + line.points_earned
            line.total_score = state.team_scores[line.key]
        for player in state.players:
            player.score = state.team_scores[TEAM_B if player.team == TEAM_B else TEAM_A]
    else:
        lines = build_player_lines(state.players)
        apply_awards(lines)
        by_id = {player.id: player for player in state.players}
        for line in lines:
            player = by_id[line.key]
            player.score += line.points_earned
            line.total_score = player.score

    logger.info(
        f"Room {state.code} round {state.round_number} scored: "
        + ", ".join(f"{line.name}+{line.points_earned}={line.total_score}" for line in lines)
    )
    return RoundSummary(round=state.round_number, mode=state.mode, breakdown=lines)


def find_match_winner(state: RoomState, lines: List[ScoreLine]):
    """
    Return the key of the unit that reached the target score, or None.

    If more than one unit crossed the target in the same round, the
    highest total wins; an exact tie goes to the first unit in order.
    """
    reached = [line for line in lines if line.total_score >= state.target_score]
    if not reached:
        return None
    best = max(line.total_score for line in reached)
    for line in reached:
        if line.total_score == best:
            return line.key
    return None
