"""Game exceptions.

Everything the round engine can refuse lives here so the Socket.IO layer can
turn it into an ``error`` event for the sender without touching the session.
"""


class BeautyContestException(Exception):
    """Base class for every game exception."""
    pass


class RejectedInput(BeautyContestException):
    """Player input refused before any state was changed."""
    message = 'Request rejected'

    def __init__(self, message=None):
        super().__init__(message or self.message)


# ---- Lobby ----

class InvalidName(RejectedInput):
    message = 'Name is required'


class NameTaken(RejectedInput):
    message = 'Name already taken'


class RosterFull(RejectedInput):
    message = 'Game is full (4 players maximum)'


class GameAlreadyStarted(RejectedInput):
    message = 'Game already in progress'


class WrongPlayerCount(RejectedInput):
    message = 'Need exactly 4 players to start'


class NotJoined(RejectedInput):
    message = 'Join the game first'


class PlayerNotFound(RejectedInput):
    def __init__(self, player_id):
        self.player_id = player_id
        super().__init__(f"Player {player_id} is not in this game")


# ---- Rounds ----

class RoundNotOpen(RejectedInput):
    message = 'No round is accepting numbers right now'


class PlayerEliminated(RejectedInput):
    message = 'Eliminated players cannot submit'


class InvalidNumber(RejectedInput):
    message = 'Invalid number. Choose between 0 and 100.'


class AlreadySubmitted(RejectedInput):
    message = 'You already submitted a number this round'


# ---- Invariants ----

class EmptyRoundError(BeautyContestException):
    """A round was resolved with no submissions.

    The lifecycle fills every missing submission before resolving, so this
    only fires on a programming error and is never reported to players.
    """

    def __init__(self, round_number=None):
        self.round_number = round_number
        super().__init__(f"Round {round_number} has no submissions to resolve")
