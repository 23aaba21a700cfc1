from typing import Iterable, List, Mapping, Optional

from beauty_contest.exceptions import EmptyRoundError
from beauty_contest.models import Player, Submission
from .rules import (
    DOUBLE_MULTIPLIER,
    DOUBLE_MULTIPLIER_RULE,
    ELIMINATION_SCORE,
    HIGH_STAKES,
    LUCKY_NUMBER,
    LUCKY_NUMBER_RULE,
    PREDICTION_MODE,
    REVERSE_MODE,
    STANDARD_MULTIPLIER,
    is_active,
)


def _choices(submissions: Mapping[str, Submission]) -> List[Submission]:
    choices = list(submissions.values())
    if not choices:
        raise EmptyRoundError()
    return choices


def calculate_average(submissions: Mapping[str, Submission]) -> float:
    numbers = [c.number for c in _choices(submissions)]
    return sum(numbers) / len(numbers)


def calculate_target(
    submissions: Mapping[str, Submission],
    elimination_count: int,
    previous_winning_number: Optional[int] = None,
) -> float:
    """Target for the round.

    0.8 x the average, or 1.6 x once the double multiplier is unlocked.
    Prediction mode replaces the average with last round's winning number
    when there is one.
    """
    average = calculate_average(submissions)
    if is_active(PREDICTION_MODE, elimination_count) and previous_winning_number is not None:
        return previous_winning_number * STANDARD_MULTIPLIER
    if is_active(DOUBLE_MULTIPLIER_RULE, elimination_count):
        return average * DOUBLE_MULTIPLIER
    return average * STANDARD_MULTIPLIER


def find_winner(
    submissions: Mapping[str, Submission],
    target: float,
    elimination_count: int,
) -> Submission:
    """Pick the round winner.

    Reverse mode is checked before the lucky number even though it unlocks
    earlier, so once both are on the furthest pick still wins. Ties go to the
    earliest submission.
    """
    choices = _choices(submissions)

    if is_active(REVERSE_MODE, elimination_count):
        winner = choices[0]
        max_distance = abs(winner.number - target)
        for choice in choices[1:]:
            distance = abs(choice.number - target)
            if distance > max_distance:
                max_distance = distance
                winner = choice
        return winner

    if is_active(LUCKY_NUMBER_RULE, elimination_count):
        for choice in choices:
            if choice.number == LUCKY_NUMBER:
                return choice

    winner = choices[0]
    min_distance = abs(winner.number - target)
    for choice in choices[1:]:
        distance = abs(choice.number - target)
        if distance < min_distance:
            min_distance = distance
            winner = choice
    return winner


def update_scores(
    players: Iterable[Player],
    winner: Submission,
    elimination_count: int,
) -> List[str]:
    """Apply the round's score deltas and flag eliminations.

    Standard: the winner keeps their score, every other active player
    loses 1. High stakes: winner +1, losers -2. Returns the ids of players
    eliminated by this call, in roster order.
    """
    high_stakes = is_active(HIGH_STAKES, elimination_count)
    players = list(players)

    for player in players:
        if player.eliminated:
            continue
        if player.id == winner.player_id:
            if high_stakes:
                player.score += 1
        else:
            player.score -= 2 if high_stakes else 1

    newly_eliminated = []
    for player in players:
        if not player.eliminated and player.score <= ELIMINATION_SCORE:
            player.eliminated = True
            newly_eliminated.append(player.id)
    return newly_eliminated
