"""
Narrative layer for Hunter's Path.

Lore entries unlocked by level, gate-entry flavour text, and the
achievement ledger. Reads game data; the only thing it writes is the
achievement list on Records.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List

from content.gates import MONSTER_DATA
from models import Gate, Records


# =============================================================================
# LORE
# =============================================================================

@dataclass(frozen=True)
class LoreEntry:
    level: int
    title: str
    text: str


LORE: List[LoreEntry] = [
    LoreEntry(1, 'What Are Gates?',
              'Dimensional rifts that appeared across the world without warning. Inside lie '
              'monsters, treasure, and mysteries. Hunters are those brave enough to enter.'),
    LoreEntry(5, "The Hunter's Guild",
              'Formed to organize Hunters and manage gate clearance. They rank both Hunters '
              'and gates from E (weakest) to S (catastrophic).'),
    LoreEntry(10, 'Spirit Binding',
              'Some Hunters bind the essence of defeated bosses, creating spirit allies that '
              'fight alongside them. The mechanism is poorly understood.'),
    LoreEntry(15, 'The Fatigue Problem',
              'Prolonged exposure to gate energy dulls the senses and weakens even the '
              'strongest Hunters. Rest is not optional; it is survival.'),
    LoreEntry(20, 'Gate Ranks Explained',
              'E-Rank gates are manageable. B-Rank gates have leveled city blocks when left '
              'unchecked. A and S-Rank gates are existential threats.'),
    LoreEntry(30, 'The Origin of Gates',
              'No one knows why gates appeared. Some blame a weakening barrier between '
              'dimensions, others an ancient experiment gone wrong.'),
]


def unlocked_lore(level: int) -> List[LoreEntry]:
    return [entry for entry in LORE if entry.level <= level]


def lore_between(old_level: int, new_level: int) -> List[LoreEntry]:
    """Entries newly unlocked by going from old_level to new_level."""
    return [entry for entry in LORE if old_level < entry.level <= new_level]


def gate_flavour(gate: Gate) -> Dict[str, str]:
    monster = MONSTER_DATA[gate.rank]
    return {
        'environment': monster['environment'],
        'sound': monster['sound'],
        'description': monster['description'],
    }


# =============================================================================
# ACHIEVEMENTS
# =============================================================================

@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    earned: Callable[[Records], bool]


ACHIEVEMENTS: List[Achievement] = [
    Achievement('first_blood', 'First Blood', 'Win your first gate battle',
                lambda r: r.gates_completed >= 1),
    Achievement('gate_master', 'Gate Master', 'Complete 10 gates',
                lambda r: r.gates_completed >= 10),
    Achievement('spirit_caller', 'Spirit Caller', 'Bind your first spirit',
                lambda r: r.allies_bound >= 1),
    Achievement('daily_devotee', 'Daily Devotee', 'Complete a full daily quest set',
                lambda r: r.dailies_completed >= 1),
]


def check_achievements(records: Records) -> List[Achievement]:
    """Unlock every newly earned achievement and return them."""
    unlocked = []
    for achievement in ACHIEVEMENTS:
        if achievement.id not in records.achievements and achievement.earned(records):
            records.achievements.append(achievement.id)
            unlocked.append(achievement)
    return unlocked
