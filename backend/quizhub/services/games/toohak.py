from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional

from quizhub.exceptions import InvariantViolation
from quizhub.models import Question
from .base import (
    ACTIVE_PHASES,
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
from .scheduler import RoundClock
from .scoring import answered_snapshot, rank_players, score_answer, score_snapshot

logger = logging.getLogger(__name__)


@dataclass
class Round:
    question_index: int
    question: Question
    ordinal: int


class ToohakGame:
    """Live multiplayer quiz: everyone answers the same question against a clock.

    Pipeline: ready -> question open -> round settling -> question open ...
    -> concluded. A round settles when its deadline fires or as soon as
    every seated player has answered; after a short settle delay the next
    question opens, until ``number_of_questions`` rounds were played.
    """

    game_type = GameType.TOOHAK

    def __init__(self, room_id, broadcaster, timers, bank=QUESTION_BANK, rng=None, on_concluded=None):
        self.room_id = room_id
        self.broadcaster = broadcaster
        self.bank = bank
        self.rng = rng or random.Random()
        self.on_concluded = on_concluded
        self.clock = RoundClock(timers, label=f"room={room_id}")
        self.phase = GamePhase.CREATED
        self.options = GameOptions()
        self.admin_ids: List[str] = []
        self.round: Optional[Round] = None
        self.round_ordinal = 0
        self.round_history: List[dict] = []
        self.conclusion_reason: Optional[str] = None
        self._players: Dict[str, PlayerRoundData] = {}
        self._departure_policy = forfeit

    # ---- lifecycle ----

    def initialize(self, players, options=None) -> None:
        if self.phase is not GamePhase.CREATED:
            raise InvariantViolation(f"Toohak game for room {self.room_id} initialized twice")
        if not self.bank:
            raise InvariantViolation("Toohak needs a non-empty question bank")
        self.options = GameOptions.from_dict(options)
        self.admin_ids = list(self.options.admin_ids) or [p.id for p in players[:1]]
        self._players = {p.id: PlayerRoundData(display_name=p.display_name) for p in players}
        self._departure_policy = get_policy(self.options.departure_policy)
        self.phase = GamePhase.READY
        logger.info(
            f"[game-init] room={self.room_id} type=Toohak players={list(self._players)} admins={self.admin_ids} "
            f"questions={self.options.number_of_questions} round={self.options.round_time_ms}ms"
        )

    def start_cycle(self) -> bool:
        if self.phase is not GamePhase.READY:
            logger.warning(f"[game-start] room={self.room_id} start_cycle ignored in phase={self.phase.value}")
            return False
        self.round_ordinal = 0
        self.round_history = []
        for data in self._players.values():
            data.score = 0
            data.answered_this_round = False
        self._open_round()
        return True

    def conclude(self, reason: Optional[str] = None, silent: bool = False) -> None:
        """End the game. A silent conclusion (the room is gone) emits nothing."""
        if self.phase is GamePhase.CONCLUDED:
            return
        self.clock.cancel()
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

    # ---- player input ----

    def handle_player_action(self, player_id, action) -> ActionResult:
        if self.phase not in ACTIVE_PHASES:
            return ActionResult.reject(NOT_IN_PROGRESS)
        action = action or {}
        action_type = action.get('type')
        if action_type == 'submitAnswer':
            return self._submit_answer(player_id, action)
        logger.warning(f"[action] room={self.room_id} unknown action type {action_type!r}")
        return ActionResult.reject(f"Unknown action type: {action_type}")

    def _submit_answer(self, player_id, action) -> ActionResult:
        question_ref = read_int(action, 'questionRef')
        option_index = read_int(action, 'optionIndex')
        if question_ref is None or option_index is None:
            return ActionResult.reject("Invalid payload for submitAnswer.")

        data = self._players.get(player_id)
        if data is None or not data.seated:
            return ActionResult.reject("Player is not part of this game.")
        if self.phase is not GamePhase.QUESTION_OPEN:
            return ActionResult.reject("No question is open right now.")
        if question_ref != self.round.ordinal:
            return ActionResult.reject("Answer for an incorrect or outdated question.")
        if data.answered_this_round:
            return ActionResult.reject("You have already answered this question.")
        if not 0 <= option_index < len(self.round.question.options):
            return ActionResult.reject("Option index out of range.")

        data.score += score_answer(self.round.question, option_index)
        data.answered_this_round = True
        logger.info(f"[answer] room={self.room_id} player={player_id} round={question_ref} score={data.score}")

        # Correctness stays private until the round ends
        self.broadcaster.to_room(self.room_id, 'playerAnswered', {
            'roomId': self.room_id,
            'playerId': player_id,
            'questionRef': question_ref,
        })

        if self._everyone_answered():
            self._settle_round()
        return ActionResult.accept(data={'questionRef': question_ref}, reason="Answer submitted.")

    def handle_player_departure(self, player_id) -> None:
        if self.phase in (GamePhase.CREATED, GamePhase.CONCLUDED):
            return
        self._departure_policy(self, player_id)

    def unseat(self, player_id) -> None:
        data = self._players.get(player_id)
        if data is None or not data.seated:
            return
        data.seated = False
        logger.info(f"[departure] room={self.room_id} player={player_id} unseated score={data.score}")
        if self.phase is GamePhase.QUESTION_OPEN and self._everyone_answered():
            self._settle_round()

    def seated_ids(self) -> List[str]:
        return [pid for pid, data in self._players.items() if data.seated]

    # ---- round state machine ----

    def _everyone_answered(self) -> bool:
        seated = [data for data in self._players.values() if data.seated]
        return bool(seated) and all(data.answered_this_round for data in seated)

    def _open_round(self) -> None:
        if self.phase is GamePhase.CONCLUDED:
            return
        previous = self.round.question_index if self.round is not None else None
        question, index = pick_question(self.bank, exclude=previous, rng=self.rng)
        self.round = Round(question_index=index, question=question, ordinal=self.round_ordinal)
        for data in self._players.values():
            data.answered_this_round = False
        self.phase = GamePhase.QUESTION_OPEN

        payload = {
            'roomId': self.room_id,
            'questionRef': self.round.ordinal,
            'questionIndex': index,
            'roundNumber': self.round.ordinal + 1,
            'totalQuestions': self.options.number_of_questions,
            'deadlineMs': self.options.round_time_ms,
        }
        payload.update(question.to_client())
        self.broadcaster.to_room(self.room_id, 'newQuestion', payload)
        logger.info(
            f"[round-open] room={self.room_id} round={self.round.ordinal + 1}/{self.options.number_of_questions} "
            f"question={index}"
        )
        self.clock.arm(self.options.round_time_ms, self._on_deadline, stage='question')

    def _on_deadline(self) -> None:
        if self.phase is GamePhase.QUESTION_OPEN:
            self._settle_round()

    def _settle_round(self) -> None:
        self.clock.cancel()
        self.phase = GamePhase.ROUND_SETTLING
        current = self.round
        scores = score_snapshot(self._players)
        answered = answered_snapshot(self._players)
        self.round_history.append({
            'round': current.ordinal + 1,
            'questionIndex': current.question_index,
            'correctOptionIndex': current.question.correct_option_index,
            'answered': [pid for pid, done in answered.items() if done],
            'scores': scores,
        })
        self.broadcaster.to_room(self.room_id, 'roundEnded', {
            'roomId': self.room_id,
            'questionRef': current.ordinal,
            'questionIndex': current.question_index,
            'correctOptionIndex': current.question.correct_option_index,
            'scores': scores,
            'answered': answered,
        })
        for data in self._players.values():
            data.answered_this_round = False
        self.round_ordinal += 1
        logger.info(f"[round-settle] room={self.room_id} played={self.round_ordinal}/{self.options.number_of_questions}")

        if self.round_ordinal >= self.options.number_of_questions:
            self.conclude("All questions answered.")
        else:
            self.clock.arm(self.options.settle_delay_ms, self._open_round, stage='settle')

    # ---- views ----

    def current_state(self) -> GamePhase:
        return self.phase

    def player_data(self) -> Dict[str, PlayerRoundData]:
        return dict(self._players)

    def project_client_state(self):
        state = {
            'gameType': self.game_type.value,
            'phase': self.phase.value,
            'roundNumber': self.round.ordinal + 1 if self.round is not None else 0,
            'totalQuestions': self.options.number_of_questions,
            'roundTimeMs': self.options.round_time_ms,
            'adminIds': list(self.admin_ids),
            'players': {pid: data.to_dict() for pid, data in self._players.items()},
            'question': None,
        }
        if self.round is not None:
            question = self.round.question.to_client(reveal=self.phase is not GamePhase.QUESTION_OPEN)
            question['questionRef'] = self.round.ordinal
            question['questionIndex'] = self.round.question_index
            state['question'] = question
        if self.phase is GamePhase.CONCLUDED:
            state['reason'] = self.conclusion_reason
            state['standings'] = rank_players(self._players)
            state['rounds'] = list(self.round_history)
        return state
