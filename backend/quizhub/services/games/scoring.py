from __future__ import annotations

from typing import Dict, List

from quizhub.models import Question


def score_answer(question: Question, option_index: int) -> int:
    """Points for one answer: 1 for the correct option, otherwise 0.

    No partial credit and no time bonus; scores never go negative.
    """
    return 1 if option_index == question.correct_option_index else 0


def score_snapshot(player_data) -> Dict[str, int]:
    return {pid: data.score for pid, data in player_data.items()}


def answered_snapshot(player_data) -> Dict[str, bool]:
    return {pid: data.answered_this_round for pid, data in player_data.items()}


def rank_players(player_data) -> List[dict]:
    """Final standings, best score first.

    Ties share a rank and keep join order. Departed players are listed
    with their score frozen at the moment they left.
    """
    ordered = sorted(enumerate(player_data.items()), key=lambda item: (-item[1][1].score, item[0]))
    standings = []
    rank = 0
    prev_score = None
    for position, (_, (pid, data)) in enumerate(ordered, start=1):
        if data.score != prev_score:
            rank = position
            prev_score = data.score
        standings.append({
            'rank': rank,
            'playerId': pid,
            'displayName': data.display_name,
            'score': data.score,
            'seated': data.seated,
        })
    return standings
