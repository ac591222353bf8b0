from .player import Player
from .group import Group
from .season import Season
from .match_outcome import MatchOutcome
from .streak_state import StreakRecord
from .outcome_fold import OutcomeFold

__all__ = [
    "Player",
    "Group",
    "Season",
    "MatchOutcome",
    "StreakRecord",
    "OutcomeFold",
]
