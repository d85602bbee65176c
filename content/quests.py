"""
Daily quest generation and progress tracking.

Five quests per day. Difficulty tiers unlock with level and accumulated
quest reputation; objective size and rewards scale with both.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import math
import uuid

from models import Daily, DailyQuest, Difficulty, QuestType, RewardBundle
from rng import RandomSource


QUESTS_PER_DAY = 5


@dataclass(frozen=True)
class QuestTemplate:
    name: str
    need: int
    exp: int
    gold: int


QUEST_TEMPLATES: Dict[QuestType, QuestTemplate] = {
    QuestType.COMBAT: QuestTemplate('Training Reps', need=20, exp=20, gold=10),
    QuestType.EXPLORATION: QuestTemplate('Cardio Minutes', need=5, exp=15, gold=12),
    QuestType.COLLECTION: QuestTemplate('Gather Mana Shards', need=6, exp=18, gold=15),
    QuestType.SKILL: QuestTemplate('Meditation Cycles', need=3, exp=22, gold=8),
    QuestType.CHALLENGE: QuestTemplate('Endurance Trial', need=2, exp=30, gold=20),
}

DIFFICULTY_MULTIPLIER = {
    Difficulty.EASY: 1.0,
    Difficulty.MEDIUM: 1.5,
    Difficulty.HARD: 2.0,
    Difficulty.EPIC: 3.0,
}

# difficulty -> (min level, min reputation)
DIFFICULTY_UNLOCKS: Dict[Difficulty, Tuple[int, int]] = {
    Difficulty.EASY: (1, 0),
    Difficulty.MEDIUM: (3, 0),
    Difficulty.HARD: (8, 25),
    Difficulty.EPIC: (15, 75),
}

NEED_LEVEL_SCALE = 0.1
REWARD_LEVEL_SCALE = 0.15

BONUS_BUNDLES = {
    Difficulty.HARD: RewardBundle(potions=1),
    Difficulty.EPIC: RewardBundle(potions=1, keys=1, runes=1),
}

REPUTATION_DIVISOR = 10


def unlocked_difficulties(level: int, reputation: int) -> List[Difficulty]:
    return [
        difficulty for difficulty, (min_level, min_rep) in DIFFICULTY_UNLOCKS.items()
        if level >= min_level and reputation >= min_rep
    ]


def make_quest(quest_type: QuestType, difficulty: Difficulty, level: int) -> DailyQuest:
    template = QUEST_TEMPLATES[quest_type]
    mult = DIFFICULTY_MULTIPLIER[difficulty]
    need = max(1, int(math.floor(template.need * mult * (1 + level * NEED_LEVEL_SCALE))))
    reward_scale = mult * (1 + level * REWARD_LEVEL_SCALE)
    bonus = BONUS_BUNDLES.get(difficulty)
    return DailyQuest(
        id=f"quest-{uuid.uuid4().hex[:8]}",
        name=template.name,
        type=quest_type,
        difficulty=difficulty,
        need=need,
        exp_reward=int(math.floor(template.exp * reward_scale)),
        gold_reward=int(math.floor(template.gold * reward_scale)),
        bonus=RewardBundle(**bonus.to_dict()) if bonus else None,
    )


def generate_daily_quests(level: int, reputation: int, rng: RandomSource) -> List[DailyQuest]:
    """Exactly QUESTS_PER_DAY quests with no type repeated back to back."""
    difficulties = unlocked_difficulties(level, reputation)
    quests: List[DailyQuest] = []
    previous: Optional[QuestType] = None
    for _ in range(QUESTS_PER_DAY):
        options = [t for t in QuestType if t != previous] or list(QuestType)
        quest_type = rng.choice(options)
        quests.append(make_quest(quest_type, rng.choice(difficulties), level))
        previous = quest_type
    return quests


def new_daily(date: str, level: int, reputation: int, rng: RandomSource) -> Daily:
    """Replacement set for a new day. Only reputation carries over."""
    return Daily(
        date=date,
        quests=generate_daily_quests(level, reputation, rng),
        reputation=reputation,
    )


@dataclass
class QuestProgress:
    """What one progress step achieved."""
    quest: DailyQuest
    quest_completed: bool = False
    set_completed: bool = False
    reputation_gained: int = 0


def progress_quest(daily: Daily, quest_id: str) -> Optional[QuestProgress]:
    """
    Advance one quest by a single step.

    Returns None when the quest is unknown or already done, or the set is
    closed. Rewards are granted by the caller based on the result.
    """
    if daily.completed or daily.forfeited:
        return None
    quest = daily.find_quest(quest_id)
    if quest is None or quest.completed:
        return None

    quest.have = min(quest.need, quest.have + 1)
    result = QuestProgress(quest=quest)
    if quest.completed:
        result.quest_completed = True
        daily.exp_awarded += quest.exp_reward
        if daily.all_done():
            result.set_completed = True
            result.reputation_gained = daily.exp_awarded // REPUTATION_DIVISOR
            daily.reputation += result.reputation_gained
            daily.completed = True
    return result
