import random

import pytest

from quizhub.exceptions import InvariantViolation
from quizhub.models import Player
from quizhub.services.games import GamePhase, ToohakGame, create_game


def _game(broadcaster, timers, bank, players=('alice', 'bob'), on_concluded=None, **options):
    settings = {'number_of_questions': 2, 'round_time_ms': 10000, 'settle_delay_ms': 3000}
    settings.update(options)
    game = ToohakGame('abcd', broadcaster, timers, bank=bank, rng=random.Random(7), on_concluded=on_concluded)
    game.initialize([Player(pid, pid.title()) for pid in players], settings)
    return game


def _answer(game, player_id, question_ref, option_index):
    return game.handle_player_action(player_id, {
        'type': 'submitAnswer',
        'questionRef': question_ref,
        'optionIndex': option_index,
    })


def _open_question(broadcaster):
    return broadcaster.events('newQuestion')[-1]


def _correct(bank, question):
    return bank[question['questionIndex']].correct_option_index


def _wrong(bank, question):
    q = bank[question['questionIndex']]
    return (q.correct_option_index + 1) % len(q.options)


def test_start_cycle_opens_first_round(broadcaster, timers, bank):
    game = _game(broadcaster, timers, bank)
    assert game.current_state() is GamePhase.READY
    assert game.start_cycle()

    question = _open_question(broadcaster)
    assert question['questionRef'] == 0
    assert question['roundNumber'] == 1
    assert question['totalQuestions'] == 2
    assert question['deadlineMs'] == 10000
    assert question['options'] == list(bank[question['questionIndex']].options)
    assert 'correctOptionIndex' not in question
    assert game.current_state() is GamePhase.QUESTION_OPEN
    assert len(timers.pending()) == 1


def test_start_cycle_only_from_ready(broadcaster, timers, bank):
    game = _game(broadcaster, timers, bank)
    assert game.start_cycle()
    assert not game.start_cycle()
    assert len(broadcaster.events('newQuestion')) == 1


def test_initialize_twice_is_an_invariant_violation(broadcaster, timers, bank):
    game = _game(broadcaster, timers, bank)
    with pytest.raises(InvariantViolation):
        game.initialize([Player('carol', 'Carol')], {})


def test_everyone_answering_settles_round_immediately(broadcaster, timers, bank):
    game = _game(broadcaster, timers, bank)
    game.start_cycle()
    first = _open_question(broadcaster)

    assert _answer(game, 'alice', 0, _correct(bank, first)).accepted
    assert broadcaster.events('roundEnded') == []
    assert _answer(game, 'bob', 0, _wrong(bank, first)).accepted

    ended = broadcaster.events('roundEnded')
    assert len(ended) == 1
    assert ended[0]['questionRef'] == 0
    assert ended[0]['correctOptionIndex'] == _correct(bank, first)
    assert ended[0]['scores'] == {'alice': 1, 'bob': 0}
    assert ended[0]['answered'] == {'alice': True, 'bob': True}
    assert game.current_state() is GamePhase.ROUND_SETTLING

    # Only the settle delay is pending; the round deadline was cancelled
    assert len(timers.pending()) == 1
    timers.advance(3)
    second = _open_question(broadcaster)
    assert second['questionRef'] == 1
    assert second['questionIndex'] != first['questionIndex']
    assert len(broadcaster.events('roundEnded')) == 1


def test_player_answered_does_not_leak_correctness(broadcaster, timers, bank):
    game = _game(broadcaster, timers, bank)
    game.start_cycle()
    question = _open_question(broadcaster)
    result = _answer(game, 'alice', 0, _correct(bank, question))

    assert broadcaster.events('playerAnswered') == [{'roomId': 'abcd', 'playerId': 'alice', 'questionRef': 0}]
    assert result.data == {'questionRef': 0}
    assert 'correctOptionIndex' not in game.project_client_state()['question']


def test_deadline_settles_round_with_missing_answers(broadcaster, timers, bank):
    game = _game(broadcaster, timers, bank)
    game.start_cycle()
    question = _open_question(broadcaster)
    _answer(game, 'alice', 0, _correct(bank, question))

    timers.advance(9)
    assert broadcaster.events('roundEnded') == []
    timers.advance(1)
    ended = broadcaster.events('roundEnded')
    assert ended[0]['answered'] == {'alice': True, 'bob': False}
    assert ended[0]['scores'] == {'alice': 1, 'bob': 0}


def test_second_answer_is_rejected_and_score_unchanged(broadcaster, timers, bank):
    game = _game(broadcaster, timers, bank)
    game.start_cycle()
    question = _open_question(broadcaster)

    assert _answer(game, 'alice', 0, _correct(bank, question)).accepted
    second = _answer(game, 'alice', 0, _wrong(bank, question))
    assert not second.accepted
    assert second.reason == "You have already answered this question."
    assert game.player_data()['alice'].score == 1


def test_stale_and_malformed_answers_rejected(broadcaster, timers, bank):
    game = _game(broadcaster, timers, bank)
    game.start_cycle()

    assert _answer(game, 'alice', 1, 0).reason == "Answer for an incorrect or outdated question."
    assert _answer(game, 'alice', 0, 99).reason == "Option index out of range."
    assert _answer(game, 'alice', 0, True).reason == "Invalid payload for submitAnswer."
    assert _answer(game, 'alice', '0', 0).reason == "Invalid payload for submitAnswer."
    assert _answer(game, 'zed', 0, 0).reason == "Player is not part of this game."
    assert game.handle_player_action('alice', {'type': 'dance'}).reason == "Unknown action type: dance"
    assert all(not d.answered_this_round for d in game.player_data().values())


def test_answers_rejected_while_round_settles(broadcaster, timers, bank):
    game = _game(broadcaster, timers, bank, players=('alice',))
    game.start_cycle()
    question = _open_question(broadcaster)
    _answer(game, 'alice', 0, _correct(bank, question))
    assert game.current_state() is GamePhase.ROUND_SETTLING
    assert _answer(game, 'alice', 1, 0).reason == "No question is open right now."


def test_full_game_concludes_and_rejects_further_actions(broadcaster, timers, bank):
    concluded = []
    game = _game(broadcaster, timers, bank, on_concluded=concluded.append)
    game.start_cycle()

    for ref in range(2):
        question = _open_question(broadcaster)
        assert question['questionRef'] == ref
        _answer(game, 'alice', ref, _correct(bank, question))
        _answer(game, 'bob', ref, _wrong(bank, question))
        timers.advance(3)

    final = broadcaster.events('gameConcluded')
    assert len(final) == 1
    assert final[0]['finalScores'] == {'alice': 2, 'bob': 0}
    assert final[0]['standings'][0]['playerId'] == 'alice'
    assert final[0]['reason'] == "All questions answered."
    assert concluded == ["All questions answered."]
    assert game.current_state() is GamePhase.CONCLUDED
    assert len(broadcaster.events('newQuestion')) == 2
    assert timers.pending() == []

    result = _answer(game, 'alice', 2, 0)
    assert not result.accepted
    assert result.reason == "Game is not currently in progress."

    state = game.project_client_state()
    assert state['question']['correctOptionIndex'] is not None
    assert [r['round'] for r in state['rounds']] == [1, 2]


def test_stale_timer_callback_is_ignored(broadcaster, timers, bank):
    game = _game(broadcaster, timers, bank)
    game.start_cycle()
    first_deadline = timers.scheduled[0][1]
    question = _open_question(broadcaster)
    _answer(game, 'alice', 0, _correct(bank, question))
    _answer(game, 'bob', 0, _correct(bank, question))
    timers.advance(3)
    assert _open_question(broadcaster)['questionRef'] == 1

    # A late firing of round 0's deadline must not close round 1
    first_deadline()
    assert len(broadcaster.events('roundEnded')) == 1
    assert game.current_state() is GamePhase.QUESTION_OPEN


def test_conclude_is_idempotent_and_cancels_timers(broadcaster, timers, bank):
    concluded = []
    game = _game(broadcaster, timers, bank, on_concluded=concluded.append)
    game.start_cycle()
    assert game.clock.armed
    game.conclude("Stopped by admin.")
    game.conclude("Again.")

    assert len(broadcaster.events('gameConcluded')) == 1
    assert concluded == ["Stopped by admin."]
    assert not game.clock.armed
    assert timers.pending() == []
    assert timers.advance(60) == 0


def test_consecutive_rounds_never_repeat_a_question(broadcaster, timers, bank):
    game = _game(broadcaster, timers, bank, players=('alice',), number_of_questions=30)
    game.start_cycle()
    for ref in range(30):
        _answer(game, 'alice', ref, 0)
        timers.advance(3)

    indices = [q['questionIndex'] for q in broadcaster.events('newQuestion')]
    assert len(indices) == 30
    assert all(a != b for a, b in zip(indices, indices[1:]))


def test_departure_of_last_unanswered_player_closes_round(broadcaster, timers, bank):
    game = _game(broadcaster, timers, bank, players=('alice', 'bob', 'carol'))
    game.start_cycle()
    question = _open_question(broadcaster)
    _answer(game, 'alice', 0, _correct(bank, question))
    _answer(game, 'bob', 0, _correct(bank, question))

    game.handle_player_departure('carol')
    assert len(broadcaster.events('roundEnded')) == 1
    assert game.seated_ids() == ['alice', 'bob']
    assert game.player_data()['carol'].seated is False


def test_factory_builds_variant_by_type(broadcaster, timers, bank):
    game = create_game('toohak', 'abcd', broadcaster, timers, bank=bank)
    assert isinstance(game, ToohakGame)
    with pytest.raises(ValueError):
        create_game('Chess', 'abcd', broadcaster, timers)
