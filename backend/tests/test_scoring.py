import pytest

from beauty_contest.exceptions import EmptyRoundError
from beauty_contest.models import Player, Submission
from beauty_contest.services.games.scoring import (
    calculate_average,
    calculate_target,
    find_winner,
    update_scores,
)


def make_submissions(*picks):
    return {
        pid: Submission(player_id=pid, player_name=pid, number=number)
        for pid, number in picks
    }


def make_players(*scores):
    return [Player(id=pid, name=pid, score=score) for pid, score in scores]


STANDARD = make_submissions(('A', 20), ('B', 30), ('C', 40), ('D', 50))


def test_average_and_standard_target():
    assert calculate_average(STANDARD) == 35
    assert calculate_target(STANDARD, 0) == pytest.approx(28)


def test_double_multiplier_target():
    assert calculate_target(STANDARD, 1) == pytest.approx(56)
    # Still on after later thresholds are crossed
    assert calculate_target(STANDARD, 3) == pytest.approx(56)


def test_prediction_mode_uses_previous_winning_number():
    assert calculate_target(STANDARD, 5, previous_winning_number=50) == pytest.approx(40)
    # Without a previous round the multiplier rule still applies
    assert calculate_target(STANDARD, 5) == pytest.approx(56)
    # Below its threshold the previous number is ignored
    assert calculate_target(STANDARD, 1, previous_winning_number=50) == pytest.approx(56)


def test_empty_submissions_raise():
    with pytest.raises(EmptyRoundError):
        calculate_target({}, 0)
    with pytest.raises(EmptyRoundError):
        find_winner({}, 10.0, 0)


def test_standard_winner_is_closest():
    winner = find_winner(STANDARD, 28, 0)
    assert winner.player_id == 'A'


def test_reverse_mode_winner_is_furthest():
    winner = find_winner(STANDARD, 28, 2)
    assert winner.player_id == 'D'


def test_reverse_mode_outranks_lucky_number():
    subs = make_submissions(('A', 10), ('B', 42), ('C', 60), ('D', 70))
    assert find_winner(subs, 12, 3).player_id == 'D'
    assert find_winner(subs, 12, 4).player_id == 'D'
    assert find_winner(subs, 65, 3).player_id == 'A'


def test_lucky_number_ignored_before_its_threshold():
    subs = make_submissions(('A', 10), ('B', 42), ('C', 60), ('D', 70))
    assert find_winner(subs, 12, 0).player_id == 'A'
    assert find_winner(subs, 12, 1).player_id == 'A'


def test_distance_ties_go_to_first_submission():
    subs = make_submissions(('A', 10), ('B', 30), ('C', 10), ('D', 30))
    assert find_winner(subs, 20, 0).player_id == 'A'
    assert find_winner(subs, 20, 2).player_id == 'A'


def test_resolution_is_deterministic():
    first = find_winner(STANDARD, calculate_target(STANDARD, 1), 1)
    second = find_winner(STANDARD, calculate_target(STANDARD, 1), 1)
    assert first == second
    assert calculate_target(STANDARD, 1) == calculate_target(STANDARD, 1)


def test_standard_scoring():
    players = make_players(('A', 0), ('B', 0), ('C', 0), ('D', -9))
    winner = STANDARD['A']
    eliminated = update_scores(players, winner, 0)
    assert [p.score for p in players] == [0, -1, -1, -10]
    assert eliminated == ['D']
    assert players[3].eliminated


def test_high_stakes_scoring():
    players = make_players(('A', 0), ('B', 0), ('C', 0), ('D', 0))
    eliminated = update_scores(players, STANDARD['A'], 4)
    assert [p.score for p in players] == [1, -2, -2, -2]
    assert eliminated == []


def test_eliminated_players_are_not_scored_again():
    players = make_players(('A', 0), ('B', -10), ('C', 0), ('D', 0))
    players[1].eliminated = True
    eliminated = update_scores(players, STANDARD['A'], 1)
    assert players[1].score == -10
    assert eliminated == []


def test_several_players_eliminated_in_one_round():
    players = make_players(('A', 0), ('B', -9), ('C', -9), ('D', -3))
    eliminated = update_scores(players, STANDARD['A'], 0)
    assert eliminated == ['B', 'C']
    assert not players[3].eliminated
