import random
import threading
from typing import Callable, Optional

from beauty_contest.exceptions import (
    AlreadySubmitted,
    EmptyRoundError,
    GameAlreadyStarted,
    InvalidName,
    InvalidNumber,
    NameTaken,
    PlayerEliminated,
    PlayerNotFound,
    RosterFull,
    RoundNotOpen,
    WrongPlayerCount,
)
from beauty_contest.models import (
    PHASE_GAME_ENDED,
    PHASE_READY,
    PHASE_RESOLVING,
    PHASE_ROUND_OPEN,
    PHASE_WAITING,
    Player,
    Session,
    Submission,
    generate_player_id,
)
from .rules import MAX_CHOICE, MAX_PLAYERS, MIN_CHOICE, STANDARD_RULE_TEXT, active_rule
from .scoring import calculate_average, calculate_target, find_winner, update_scores


def normalize_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidName()
    return name.strip()


def parse_choice(value) -> int:
    """Coerce a submitted value into an integer pick in [0, 100].

    Accepts ints, integral floats and digit strings. Anything else raises
    InvalidNumber.
    """
    if isinstance(value, bool):
        raise InvalidNumber()
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise InvalidNumber()
        number = int(value)
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            raise InvalidNumber() from None
    else:
        raise InvalidNumber()
    if not MIN_CHOICE <= number <= MAX_CHOICE:
        raise InvalidNumber()
    return number


class RoundLifecycle:
    """Owns the session and every transition of it.

    Each public method runs start to finish under one lock, so player
    actions, countdown ticks and delayed transitions never interleave.
    Broadcasts go out through ``emit(event, payload)``; timers come from
    ``scheduler.call_later``.
    """

    def __init__(
        self,
        emit: Callable[[str, dict], None],
        scheduler,
        logger,
        round_duration: int = 30,
        start_delay: float = 2,
        next_round_delay: float = 5,
        game_end_delay: float = 3,
        rng: Optional[random.Random] = None,
        session: Optional[Session] = None,
    ):
        self.emit = emit
        self.scheduler = scheduler
        self.logger = logger
        self.round_duration = round_duration
        self.start_delay = start_delay
        self.next_round_delay = next_round_delay
        self.game_end_delay = game_end_delay
        self.rng = rng or random.Random()
        self.session = session or Session()
        self._lock = threading.RLock()
        self._countdown = None
        self._pending = None

    @classmethod
    def from_config(cls, config, emit, scheduler, logger, rng=None):
        return cls(
            emit=emit,
            scheduler=scheduler,
            logger=logger,
            round_duration=int(config.get('ROUND_DURATION_SEC', 30)),
            start_delay=config.get('START_DELAY_SEC', 2),
            next_round_delay=config.get('NEXT_ROUND_DELAY_SEC', 5),
            game_end_delay=config.get('GAME_END_DELAY_SEC', 3),
            rng=rng,
        )

    # ---- Lobby ----

    def join(self, name) -> Player:
        name = normalize_name(name)
        with self._lock:
            session = self.session
            if session.started:
                raise GameAlreadyStarted()
            if len(session.players) >= MAX_PLAYERS:
                raise RosterFull()
            if session.find_by_name(name):
                raise NameTaken()

            player_id = generate_player_id()
            while player_id in session.players:
                player_id = generate_player_id()
            player = Player(id=player_id, name=name)
            session.players[player.id] = player
            if len(session.players) == MAX_PLAYERS:
                session.phase = PHASE_READY

            self.logger.info(f"[join] player={player.id} name={name} total={len(session.players)}")
            self.emit('player_joined', {'players': session.roster(), 'player_id': player.id})
            return player

    def start(self, player_id: str) -> None:
        with self._lock:
            session = self.session
            if player_id not in session.players:
                raise PlayerNotFound(player_id)
            if session.started:
                raise GameAlreadyStarted()
            if len(session.players) != MAX_PLAYERS:
                raise WrongPlayerCount()

            session.started = True
            self.logger.info(
                f"[game-start] players={[p.name for p in session.players.values()]} by={player_id}"
            )
            self.emit('game_started', {'players': session.roster(), 'round': session.round.number})
            self._pending = self.scheduler.call_later(
                self.start_delay, self._open_first_round, name='round-intro'
            )

    def disconnect(self, player_id: str) -> None:
        with self._lock:
            session = self.session
            player = session.players.get(player_id)
            if not player:
                return
            if session.started:
                # The record stays so the round can still be auto-filled
                self.logger.warning(f"[disconnect] player={player_id} name={player.name} left mid-game")
                return

            del session.players[player_id]
            session.phase = PHASE_WAITING
            self.logger.info(f"[disconnect] player={player_id} name={player.name} total={len(session.players)}")
            if not session.players:
                self._reset()
                self.logger.info("[reset] no players remaining")
                return
            self.emit('player_joined', {'players': session.roster()})

    # ---- Rounds ----

    def open_round(self) -> None:
        with self._lock:
            session = self.session
            rnd = session.round
            self._cancel_countdown()
            rnd.reset(self.round_duration)
            session.phase = PHASE_ROUND_OPEN
            rule_text = session.escalation.latest_rule_text() or STANDARD_RULE_TEXT

            self.logger.info(f"[round-open] round={rnd.number} duration={self.round_duration}s rule={rule_text!r}")
            self.emit('round_started', {
                'round': rnd.number,
                'players': session.roster(),
                'rule': rule_text,
            })
            self._countdown = self.scheduler.call_later(1, self.tick, rnd.number, name='countdown')

    def tick(self, round_number: int) -> None:
        with self._lock:
            session = self.session
            rnd = session.round
            if session.phase != PHASE_ROUND_OPEN or rnd.number != round_number:
                self.logger.info(
                    f"[timer-abort] tick for round={round_number} phase={session.phase} current_round={rnd.number}"
                )
                return

            rnd.time_left -= 1
            self.emit('timer_tick', {'time_left': rnd.time_left})
            if rnd.time_left > 0:
                self._countdown = self.scheduler.call_later(1, self.tick, round_number, name='countdown')
                return

            self._countdown = None
            self._auto_fill()
            self.resolve_round()

    def submit(self, player_id: str, raw_number) -> Submission:
        with self._lock:
            session = self.session
            player = session.players.get(player_id)
            if not player:
                raise PlayerNotFound(player_id)
            if session.phase != PHASE_ROUND_OPEN:
                raise RoundNotOpen()
            if player.eliminated:
                raise PlayerEliminated()
            if player_id in session.round.submissions:
                raise AlreadySubmitted()
            number = parse_choice(raw_number)

            submission = Submission(player_id=player.id, player_name=player.name, number=number)
            session.round.submissions[player.id] = submission
            self.logger.info(f"[submit] round={session.round.number} player={player.name} number={number}")

            if not session.missing_submissions():
                self.resolve_round()
            return submission

    def _auto_fill(self) -> None:
        rnd = self.session.round
        for player in self.session.missing_submissions():
            number = self.rng.randint(MIN_CHOICE, MAX_CHOICE)
            rnd.submissions[player.id] = Submission(
                player_id=player.id, player_name=player.name, number=number, auto=True
            )
            self.logger.info(f"[auto-fill] round={rnd.number} player={player.name} number={number}")

    def resolve_round(self) -> Optional[dict]:
        """Score the open round and schedule whatever comes next.

        Every rule is judged with the elimination count as it stood when the
        round opened; eliminations caused by this round only take effect
        from the next one.
        """
        with self._lock:
            session = self.session
            rnd = session.round
            if session.phase != PHASE_ROUND_OPEN:
                self.logger.info(f"[resolve-skip] round={rnd.number} phase={session.phase}")
                return None

            if not rnd.submissions:
                raise EmptyRoundError(rnd.number)

            self._cancel_countdown()
            session.phase = PHASE_RESOLVING
            rnd.active = False

            escalation = session.escalation
            frozen_count = escalation.elimination_count
            submissions = rnd.submissions
            average = calculate_average(submissions)
            target = calculate_target(submissions, frozen_count, session.previous_winning_number())
            winner = find_winner(submissions, target, frozen_count)
            newly_eliminated = update_scores(session.players.values(), winner, frozen_count)

            result = {
                'round': rnd.number,
                'submissions': [s.to_dict() for s in submissions.values()],
                'average': average,
                'target': target,
                'winner': winner.to_dict(),
                'elimination_count': frozen_count,
                'eliminated': list(newly_eliminated),
            }
            session.round_history.append(result)
            self.logger.info(
                f"[round-resolved] round={rnd.number} average={average:.2f} target={target:.2f} "
                f"winner={winner.player_name} eliminations={frozen_count}"
            )
            self.emit('round_ended', {
                'round': rnd.number,
                'submissions': result['submissions'],
                'average': average,
                'target': target,
                'winner': result['winner'],
                'players': session.roster(),
            })

            for player_id in newly_eliminated:
                player = session.players[player_id]
                escalation.elimination_count += 1
                self.logger.info(f"[eliminated] player={player.name} count={escalation.elimination_count}")
                self.emit('player_eliminated', {'player_id': player.id, 'player_name': player.name})

                rule = active_rule(escalation.elimination_count)
                if rule is not None and rule not in escalation.unlocked_rules:
                    escalation.unlocked_rules.append(rule)
                    self.logger.info(f"[rule-unlocked] {rule.tag} threshold={rule.threshold}")
                    self.emit('new_rule_unlocked', {'rule': rule.text})

            if len(session.active_players()) <= 1:
                self._pending = self.scheduler.call_later(
                    self.game_end_delay, self._finish, rnd.number, name='game-end'
                )
            else:
                self._pending = self.scheduler.call_later(
                    self.next_round_delay, self._next_round, rnd.number, name='next-round'
                )
            return result

    def end_game(self) -> None:
        with self._lock:
            session = self.session
            session.phase = PHASE_GAME_ENDED
            active = session.active_players()
            winner = active[0] if len(active) == 1 else None

            self.logger.info(
                f"[game-ended] rounds={session.round.number} winner={winner.name if winner else None}"
            )
            self.emit('game_ended', {
                'winner': winner.to_dict() if winner else None,
                'players': session.roster(),
            })
            self._reset()

    def snapshot(self) -> dict:
        with self._lock:
            return self.session.to_dict()

    # ---- Scheduled transitions ----

    def _open_first_round(self) -> None:
        with self._lock:
            if not self.session.started or self.session.phase != PHASE_READY:
                self.logger.info(f"[timer-abort] round-intro phase={self.session.phase}")
                return
            self.open_round()

    def _next_round(self, expected_round: int) -> None:
        with self._lock:
            session = self.session
            if session.phase != PHASE_RESOLVING or session.round.number != expected_round:
                self.logger.info(f"[timer-abort] next-round expected={expected_round} phase={session.phase}")
                return
            session.round.number += 1
            self.open_round()

    def _finish(self, expected_round: int) -> None:
        with self._lock:
            session = self.session
            if session.phase != PHASE_RESOLVING or session.round.number != expected_round:
                self.logger.info(f"[timer-abort] game-end expected={expected_round} phase={session.phase}")
                return
            self.end_game()

    def _cancel_countdown(self) -> None:
        if self._countdown is not None and self._countdown.pending:
            self._countdown.cancel()
            self.logger.info(f"[timer-cancel] {self._countdown!r}")
        self._countdown = None

    def _reset(self) -> None:
        self._cancel_countdown()
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self.session.reset()
