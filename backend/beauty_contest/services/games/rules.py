"""Special rule catalog.

Every rule switches on once the elimination count reaches its threshold and
stays on. Rules are checked one by one, never as a single "current rule"
slot, so reverse mode, the lucky number and high stakes can all be in force
at the same time.
"""

from dataclasses import dataclass
from typing import List, Optional

MAX_PLAYERS = 4
ELIMINATION_SCORE = -10
LUCKY_NUMBER = 42
MIN_CHOICE = 0
MAX_CHOICE = 100

STANDARD_MULTIPLIER = 0.8
DOUBLE_MULTIPLIER = 1.6

STANDARD_RULE_TEXT = 'Standard rules apply'

# Effect categories
TARGET = 'target'
WINNER = 'winner'
SCORING = 'scoring'

# Effect tags
DOUBLE_MULTIPLIER_RULE = 'double_multiplier'
REVERSE_MODE = 'reverse'
LUCKY_NUMBER_RULE = 'lucky_number'
HIGH_STAKES = 'high_stakes'
PREDICTION_MODE = 'prediction'


@dataclass(frozen=True)
class RuleDescriptor:
    threshold: int
    category: str
    tag: str
    text: str

    def applies(self, elimination_count: int) -> bool:
        return elimination_count >= self.threshold

    def to_dict(self):
        return {
            'threshold': self.threshold,
            'category': self.category,
            'tag': self.tag,
            'text': self.text,
        }


SPECIAL_RULES = (
    RuleDescriptor(1, TARGET, DOUBLE_MULTIPLIER_RULE,
                   'Double multiplier: Target = Average × 1.6 (instead of 0.8)'),
    RuleDescriptor(2, WINNER, REVERSE_MODE,
                   'Reverse mode: Furthest from target wins'),
    RuleDescriptor(3, WINNER, LUCKY_NUMBER_RULE,
                   'Lucky number: If you choose 42, you automatically win'),
    RuleDescriptor(4, SCORING, HIGH_STAKES,
                   'High stakes: Winner gains +1 point, losers lose -2 points'),
    RuleDescriptor(5, TARGET, PREDICTION_MODE,
                   "Prediction mode: Target = Previous round's winner choice × 0.8"),
)

_BY_TAG = {rule.tag: rule for rule in SPECIAL_RULES}


def rule_at(index: int) -> Optional[RuleDescriptor]:
    """Catalog entry by zero-based position, or None past either end."""
    if 0 <= index < len(SPECIAL_RULES):
        return SPECIAL_RULES[index]
    return None


def active_rule(elimination_count: int) -> Optional[RuleDescriptor]:
    """The rule unlocked by the most recent elimination, if any."""
    if elimination_count < 1:
        return None
    return rule_at(elimination_count - 1)


def active_rules(elimination_count: int) -> List[RuleDescriptor]:
    return [rule for rule in SPECIAL_RULES if rule.applies(elimination_count)]


def is_active(tag: str, elimination_count: int) -> bool:
    return _BY_TAG[tag].applies(elimination_count)
