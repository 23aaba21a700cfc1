from dataclasses import dataclass, field
from typing import Dict, List, Optional
import secrets

# Session phases
PHASE_WAITING = 'waiting_for_players'
PHASE_READY = 'ready_to_start'
PHASE_ROUND_OPEN = 'round_open'
PHASE_RESOLVING = 'round_resolving'
PHASE_GAME_ENDED = 'game_ended'


def generate_player_id(nbytes=6):
    """Generate an opaque, URL-safe player id."""
    return secrets.token_urlsafe(nbytes)


@dataclass
class Player:
    id: str
    name: str
    score: int = 0
    eliminated: bool = False

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'eliminated': self.eliminated,
        }


@dataclass
class Submission:
    player_id: str
    player_name: str
    number: int
    auto: bool = False

    def to_dict(self):
        return {
            'player_id': self.player_id,
            'player_name': self.player_name,
            'number': self.number,
            'auto': self.auto,
        }


@dataclass
class RoundState:
    number: int = 1
    active: bool = False
    time_left: int = 0
    # Insertion ordered; distance ties resolve to the earliest entry
    submissions: Dict[str, Submission] = field(default_factory=dict)

    def reset(self, duration: int) -> None:
        self.active = True
        self.time_left = duration
        self.submissions = {}


@dataclass
class EscalationState:
    elimination_count: int = 0
    unlocked_rules: list = field(default_factory=list)

    def latest_rule_text(self) -> Optional[str]:
        if not self.unlocked_rules:
            return None
        return self.unlocked_rules[-1].text


@dataclass
class Session:
    """The single in-memory game.

    Only RoundLifecycle mutates it. ``reset()`` wipes it in place so
    references held elsewhere stay valid.
    """
    players: Dict[str, Player] = field(default_factory=dict)
    phase: str = PHASE_WAITING
    started: bool = False
    round: RoundState = field(default_factory=RoundState)
    escalation: EscalationState = field(default_factory=EscalationState)
    round_history: List[dict] = field(default_factory=list)

    def reset(self) -> None:
        self.players = {}
        self.phase = PHASE_WAITING
        self.started = False
        self.round = RoundState()
        self.escalation = EscalationState()
        self.round_history = []

    def active_players(self) -> List[Player]:
        return [p for p in self.players.values() if not p.eliminated]

    def find_by_name(self, name: str) -> Optional[Player]:
        lowered = name.lower()
        for p in self.players.values():
            if p.name.lower() == lowered:
                return p
        return None

    def missing_submissions(self) -> List[Player]:
        return [p for p in self.active_players() if p.id not in self.round.submissions]

    def previous_winning_number(self) -> Optional[int]:
        if not self.round_history:
            return None
        return self.round_history[-1]['winner']['number']

    def roster(self) -> List[dict]:
        return [p.to_dict() for p in self.players.values()]

    def to_dict(self):
        return {
            'phase': self.phase,
            'started': self.started,
            'players': self.roster(),
            'current_round': self.round.number,
            'round_active': self.round.active,
            'time_left': self.round.time_left,
            'submitted_player_ids': list(self.round.submissions.keys()),
            'elimination_count': self.escalation.elimination_count,
            'special_rules': [r.text for r in self.escalation.unlocked_rules],
            'round_history': self.round_history,
        }
