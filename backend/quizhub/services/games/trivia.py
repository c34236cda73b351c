from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional

from quizhub.exceptions import InvariantViolation
from .base import (
    NOT_IN_PROGRESS,
    ActionResult,
    GameOptions,
    GamePhase,
    GameType,
    PlayerRoundData,
    read_int,
)
from .policies import forfeit, get_policy
from .questions import QUESTION_BANK, pick_question
from .scoring import rank_players, score_answer, score_snapshot

logger = logging.getLogger(__name__)


@dataclass
class TriviaPlayerData(PlayerRoundData):
    questions_remaining: int = 0
    question_index: Optional[int] = None
    question_ref: Optional[int] = None
    last_question_index: Optional[int] = None
    questions_drawn: int = 0
    finished: bool = False

    def to_dict(self):
        d = super().to_dict()
        d['questionsRemaining'] = self.questions_remaining
        d['finished'] = self.finished
        return d


class TriviaGame:
    """Practice variant: every player walks through a private question list.

    No shared clock and no cross-player rounds. A player that used up its
    budget is finished on its own; the game concludes when every seated
    player is finished.
    """

    game_type = GameType.TRIVIA

    def __init__(self, room_id, broadcaster, timers=None, bank=QUESTION_BANK, rng=None, on_concluded=None):
        self.room_id = room_id
        self.broadcaster = broadcaster
        self.bank = bank
        self.rng = rng or random.Random()
        self.on_concluded = on_concluded
        self.phase = GamePhase.CREATED
        self.options = GameOptions()
        self.admin_ids: List[str] = []
        self.conclusion_reason: Optional[str] = None
        self._players: Dict[str, TriviaPlayerData] = {}
        self._departure_policy = forfeit

    def initialize(self, players, options=None) -> None:
        if self.phase is not GamePhase.CREATED:
            raise InvariantViolation(f"Trivia game for room {self.room_id} initialized twice")
        if not self.bank:
            raise InvariantViolation("Trivia needs a non-empty question bank")
        self.options = GameOptions.from_dict(options)
        self.admin_ids = list(self.options.admin_ids) or [p.id for p in players[:1]]
        budget = max(1, self.options.questions_per_player)
        self._players = {
            p.id: TriviaPlayerData(display_name=p.display_name, questions_remaining=budget)
            for p in players
        }
        self._departure_policy = get_policy(self.options.departure_policy)
        self.phase = GamePhase.READY
        logger.info(f"[game-init] room={self.room_id} type=Trivia players={list(self._players)} budget={budget}")

    def start_cycle(self) -> bool:
        if self.phase is not GamePhase.READY:
            logger.warning(f"[game-start] room={self.room_id} start_cycle ignored in phase={self.phase.value}")
            return False
        self.phase = GamePhase.RUNNING
        return True

    def conclude(self, reason: Optional[str] = None, silent: bool = False) -> None:
        """End the game. A silent conclusion (the room is gone) emits nothing."""
        if self.phase is GamePhase.CONCLUDED:
            return
        self.phase = GamePhase.CONCLUDED
        self.conclusion_reason = reason or "Normal completion"
        logger.info(f"[game-conclude] room={self.room_id} reason={self.conclusion_reason}")
        if silent:
            return
        self.broadcaster.to_room(self.room_id, 'gameConcluded', {
            'roomId': self.room_id,
            'reason': self.conclusion_reason,
            'finalScores': score_snapshot(self._players),
            'standings': rank_players(self._players),
        })
        if self.on_concluded is not None:
            self.on_concluded(self.conclusion_reason)

    def handle_player_action(self, player_id, action) -> ActionResult:
        if self.phase is not GamePhase.RUNNING:
            return ActionResult.reject(NOT_IN_PROGRESS)
        data = self._players.get(player_id)
        if data is None or not data.seated:
            return ActionResult.reject("Player is not part of this game.")
        if data.finished:
            return ActionResult.reject("You have no questions remaining.")

        action = action or {}
        action_type = action.get('type')
        if action_type == 'requestQuestion':
            if data.question_index is None:
                self._draw(data)
            return ActionResult.accept(data=self._question_payload(data))
        if action_type == 'submitAnswer':
            return self._submit_answer(player_id, data, action)
        return ActionResult.reject(f"Unknown action type: {action_type}")

    def _submit_answer(self, player_id, data: TriviaPlayerData, action) -> ActionResult:
        question_ref = read_int(action, 'questionRef')
        option_index = read_int(action, 'optionIndex')
        if question_ref is None or option_index is None:
            return ActionResult.reject("Invalid payload for submitAnswer.")
        if data.question_index is None:
            return ActionResult.reject("Request a question first.")
        if question_ref != data.question_ref:
            return ActionResult.reject("Answer for an incorrect or outdated question.")
        question = self.bank[data.question_index]
        if not 0 <= option_index < len(question.options):
            return ActionResult.reject("Option index out of range.")

        points = score_answer(question, option_index)
        data.score += points
        data.questions_remaining -= 1
        data.answered_this_round = True
        data.last_question_index = data.question_index
        data.question_index = None

        result = {
            'correct': points > 0,
            'correctOptionIndex': question.correct_option_index,
            'score': data.score,
            'questionsRemaining': data.questions_remaining,
            'nextQuestion': None,
        }
        if data.questions_remaining <= 0:
            data.finished = True
            self.broadcaster.to_player(player_id, 'triviaFinished', {
                'roomId': self.room_id,
                'score': data.score,
                'questionsAnswered': data.questions_drawn,
            })
            logger.info(f"[trivia] room={self.room_id} player={player_id} finished score={data.score}")
            self._conclude_if_everyone_finished()
        else:
            self._draw(data)
            result['nextQuestion'] = self._question_payload(data)
        return ActionResult.accept(data=result, reason="Answer submitted.")

    def _draw(self, data: TriviaPlayerData) -> None:
        _, index = pick_question(self.bank, exclude=data.last_question_index, rng=self.rng)
        data.question_index = index
        data.question_ref = data.questions_drawn
        data.questions_drawn += 1
        data.answered_this_round = False

    def _question_payload(self, data: TriviaPlayerData):
        payload = self.bank[data.question_index].to_client()
        payload['questionRef'] = data.question_ref
        payload['score'] = data.score
        payload['questionsRemaining'] = data.questions_remaining
        return payload

    def _conclude_if_everyone_finished(self) -> None:
        seated = [d for d in self._players.values() if d.seated]
        if seated and all(d.finished for d in seated):
            self.conclude("All players finished.")

    def handle_player_departure(self, player_id) -> None:
        if self.phase in (GamePhase.CREATED, GamePhase.CONCLUDED):
            return
        self._departure_policy(self, player_id)

    def unseat(self, player_id) -> None:
        data = self._players.get(player_id)
        if data is None or not data.seated:
            return
        data.seated = False
        if self.phase is GamePhase.RUNNING:
            self._conclude_if_everyone_finished()

    def seated_ids(self) -> List[str]:
        return [pid for pid, d in self._players.items() if d.seated]

    def current_state(self) -> GamePhase:
        return self.phase

    def player_data(self) -> Dict[str, TriviaPlayerData]:
        return dict(self._players)

    def project_client_state(self):
        # Pending questions are private to each player and never projected
        state = {
            'gameType': self.game_type.value,
            'phase': self.phase.value,
            'questionsPerPlayer': self.options.questions_per_player,
            'adminIds': list(self.admin_ids),
            'players': {pid: d.to_dict() for pid, d in self._players.items()},
        }
        if self.phase is GamePhase.CONCLUDED:
            state['reason'] = self.conclusion_reason
            state['standings'] = rank_players(self._players)
        return state
