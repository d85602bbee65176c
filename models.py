"""
Hunter's Path - Data Model

Entities owned by the GameState aggregate: the player, gates and bosses,
bound allies, items, daily quests, game time and lifetime records.

Every entity clamps its numeric fields on creation and whenever the engine
calls _clamp_all_values(). Enums are serialized by name so saves stay
readable.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import ClassVar, Dict, Any, List, Optional, Type


# =============================================================================
# BOUNDS
# =============================================================================

MIN_FATIGUE = 0.0
MAX_FATIGUE = 100.0
MIN_QUALITY = 1
MAX_QUALITY = 100

STARTING_STAT = 5
STARTING_STAT_POINTS = 5
STARTING_EXP_NEXT = 100
STARTING_HP = 100
STARTING_MP = 50


# =============================================================================
# ENUMS
# =============================================================================

class Rank(IntEnum):
    """Gate difficulty tier. Ordered E < D < C < B < A < S."""
    E = 0
    D = 1
    C = 2
    B = 3
    A = 4
    S = 5

    @property
    def letter(self) -> str:
        return self.name

    @classmethod
    def top(cls) -> 'Rank':
        return cls.S


class Rarity(IntEnum):
    COMMON = 0
    UNCOMMON = 1
    RARE = 2
    EPIC = 3
    LEGENDARY = 4

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: str) -> 'Rarity':
        return cls[str(value).upper()]


class Difficulty(IntEnum):
    EASY = 0
    MEDIUM = 1
    HARD = 2
    EPIC = 3

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: str) -> 'Difficulty':
        return cls[str(value).upper()]


class Stat(str, Enum):
    STR = 'STR'
    AGI = 'AGI'
    INT = 'INT'
    VIT = 'VIT'
    LUCK = 'LUCK'

    @classmethod
    def parse(cls, value: str) -> Optional['Stat']:
        """Return the Stat for a name like 'str' or 'LUCK', or None."""
        try:
            return cls(str(value).upper())
        except ValueError:
            return None


class Slot(str, Enum):
    WEAPON = 'weapon'
    ARMOR = 'armor'
    ACCESSORY = 'accessory'

    @classmethod
    def parse(cls, value: str) -> Optional['Slot']:
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


class AllyRole(str, Enum):
    WARRIOR = 'warrior'
    GUARDIAN = 'guardian'
    MAGE = 'mage'
    ASSASSIN = 'assassin'
    SUPPORT = 'support'


class QuestType(str, Enum):
    COMBAT = 'combat'
    EXPLORATION = 'exploration'
    COLLECTION = 'collection'
    SKILL = 'skill'
    CHALLENGE = 'challenge'


def clamp(value, lo, hi):
    return max(lo, min(hi, value))


# =============================================================================
# ITEMS
# Tagged variants: the kind is fixed when the item is created.
# =============================================================================

@dataclass
class Item:
    """Common fields shared by every item variant."""

    id: str
    name: str
    rarity: Rarity = Rarity.COMMON
    quality: int = 50
    rank: Rank = Rank.E
    sell_value: int = 1

    kind: ClassVar[str] = 'item'

    def __post_init__(self):
        self.rarity = Rarity(self.rarity)
        self.rank = Rank(self.rank)
        self.quality = clamp(int(self.quality), MIN_QUALITY, MAX_QUALITY)
        self.sell_value = max(0, int(self.sell_value))

    def _base_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'id': self.id,
            'name': self.name,
            'rarity': self.rarity.label,
            'quality': self.quality,
            'rank': self.rank.name,
            'sell_value': self.sell_value,
        }

    def to_dict(self) -> Dict[str, Any]:
        return self._base_dict()

    @staticmethod
    def _base_kwargs(data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'id': str(data['id']),
            'name': str(data['name']),
            'rarity': Rarity.parse(data.get('rarity', 'common')),
            'quality': int(data.get('quality', 50)),
            'rank': Rank[data.get('rank', 'E')],
            'sell_value': int(data.get('sell_value', 1)),
        }


@dataclass
class PotionItem(Item):
    heal_hp: int = 0
    heal_mp: int = 0

    kind: ClassVar[str] = 'potion'

    def to_dict(self) -> Dict[str, Any]:
        data = self._base_dict()
        data.update(heal_hp=self.heal_hp, heal_mp=self.heal_mp)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PotionItem':
        return cls(heal_hp=int(data['heal_hp']), heal_mp=int(data['heal_mp']),
                   **cls._base_kwargs(data))


@dataclass
class RuneItem(Item):
    stat: Stat = Stat.STR
    bonus: int = 1

    kind: ClassVar[str] = 'rune'

    def to_dict(self) -> Dict[str, Any]:
        data = self._base_dict()
        data.update(stat=self.stat.value, bonus=self.bonus)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RuneItem':
        return cls(stat=Stat(data['stat']), bonus=int(data['bonus']),
                   **cls._base_kwargs(data))


@dataclass
class KeyItem(Item):
    """Instant Dungeon Key. Banked into Player.keys when received."""

    kind: ClassVar[str] = 'key'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'KeyItem':
        return cls(**cls._base_kwargs(data))


@dataclass
class EquipmentItem(Item):
    slot: Slot = Slot.WEAPON
    primary_stat: Stat = Stat.STR
    bonuses: Dict[str, int] = field(default_factory=dict)

    kind: ClassVar[str] = 'equipment'

    def to_dict(self) -> Dict[str, Any]:
        data = self._base_dict()
        data.update(slot=self.slot.value, primary_stat=self.primary_stat.value,
                    bonuses=dict(self.bonuses))
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EquipmentItem':
        bonuses = {Stat(k).value: int(v) for k, v in data.get('bonuses', {}).items()}
        return cls(slot=Slot(data['slot']), primary_stat=Stat(data['primary_stat']),
                   bonuses=bonuses, **cls._base_kwargs(data))


ITEM_KINDS: Dict[str, Type[Item]] = {
    'potion': PotionItem,
    'rune': RuneItem,
    'key': KeyItem,
    'equipment': EquipmentItem,
}


def item_from_dict(data: Dict[str, Any]) -> Item:
    """Rebuild an item variant from its saved 'kind' tag."""
    item_cls = ITEM_KINDS[data['kind']]
    return item_cls.from_dict(data)


# =============================================================================
# ALLIES
# =============================================================================

@dataclass
class Ability:
    id: str
    name: str
    kind: str = 'active'  # 'active' | 'passive'

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'kind': self.kind}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Ability':
        return cls(id=str(data['id']), name=str(data['name']), kind=str(data.get('kind', 'active')))


@dataclass
class Ally:
    """A bound spirit. Contributes its power and costs MP upkeep in combat."""

    id: str
    name: str
    power: int
    rarity: Rarity
    role: AllyRole
    abilities: List[Ability] = field(default_factory=list)
    level: int = 1
    exp: int = 0
    exp_next: int = 100

    def __post_init__(self):
        self.power = max(1, int(self.power))
        self.rarity = Rarity(self.rarity)
        self.role = AllyRole(self.role)
        self.level = max(1, int(self.level))
        self.exp = max(0, int(self.exp))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'power': self.power,
            'rarity': self.rarity.label,
            'role': self.role.value,
            'abilities': [a.to_dict() for a in self.abilities],
            'level': self.level,
            'exp': self.exp,
            'exp_next': self.exp_next,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Ally':
        return cls(
            id=str(data['id']),
            name=str(data['name']),
            power=int(data['power']),
            rarity=Rarity.parse(data['rarity']),
            role=AllyRole(data['role']),
            abilities=[Ability.from_dict(a) for a in data.get('abilities', [])],
            level=int(data.get('level', 1)),
            exp=int(data.get('exp', 0)),
            exp_next=int(data.get('exp_next', 100)),
        )


# =============================================================================
# GATES & BOSSES
# =============================================================================

@dataclass
class Boss:
    name: str
    max_hp: int
    hp: int
    atk: int
    defense: int

    def __post_init__(self):
        self.max_hp = max(1, int(self.max_hp))
        self.hp = clamp(int(self.hp), 0, self.max_hp)
        self.atk = max(1, int(self.atk))
        self.defense = max(1, int(self.defense))

    def fresh(self) -> 'Boss':
        """Full-health copy used as a combat snapshot."""
        return Boss(self.name, self.max_hp, self.max_hp, self.atk, self.defense)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'max_hp': self.max_hp,
            'hp': self.hp,
            'atk': self.atk,
            'defense': self.defense,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Boss':
        return cls(str(data['name']), int(data['max_hp']), int(data['hp']),
                   int(data['atk']), int(data['defense']))


@dataclass
class Gate:
    id: str
    name: str
    rank: Rank
    recommended: int
    power: int
    boss: Boss

    def __post_init__(self):
        self.rank = Rank(self.rank)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'rank': self.rank.name,
            'recommended': self.recommended,
            'power': self.power,
            'boss': self.boss.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Gate':
        return cls(
            id=str(data['id']),
            name=str(data['name']),
            rank=Rank[data['rank']],
            recommended=int(data['recommended']),
            power=int(data['power']),
            boss=Boss.from_dict(data['boss']),
        )


# =============================================================================
# PLAYER
# =============================================================================

def _starting_stats() -> Dict[str, int]:
    return {stat.value: STARTING_STAT for stat in Stat}


def _empty_equipment() -> Dict[str, Optional[EquipmentItem]]:
    return {slot.value: None for slot in Slot}


@dataclass
class Player:
    """
    The hunter. All numeric fields are bounded on init and after every
    engine operation.
    """

    level: int = 1
    exp: int = 0
    exp_next: int = STARTING_EXP_NEXT
    hp: int = STARTING_HP
    max_hp: int = STARTING_HP
    mp: int = STARTING_MP
    max_mp: int = STARTING_MP
    fatigue: float = MIN_FATIGUE
    stat_points: int = STARTING_STAT_POINTS
    stats: Dict[str, int] = field(default_factory=_starting_stats)
    allies: List[Ally] = field(default_factory=list)
    inventory: List[Item] = field(default_factory=list)
    equipment: Dict[str, Optional[EquipmentItem]] = field(default_factory=_empty_equipment)
    keys: int = 0

    def __post_init__(self):
        self._clamp_all_values()

    def _clamp_all_values(self):
        """Ensure all numeric fields are within valid bounds."""
        self.level = max(1, int(self.level))
        self.exp_next = max(1, int(self.exp_next))
        self.exp = max(0, int(self.exp))

        self.max_hp = max(1, int(self.max_hp))
        self.max_mp = max(0, int(self.max_mp))
        self.hp = clamp(int(self.hp), 0, self.max_hp)
        self.mp = clamp(int(self.mp), 0, self.max_mp)

        self.fatigue = clamp(float(self.fatigue), MIN_FATIGUE, MAX_FATIGUE)
        self.stat_points = max(0, int(self.stat_points))
        self.keys = max(0, int(self.keys))

        for stat in Stat:
            self.stats[stat.value] = max(0, int(self.stats.get(stat.value, 0)))
        for slot in Slot:
            self.equipment.setdefault(slot.value, None)

    def effective_stat(self, stat: Stat) -> int:
        """Base stat plus the bonuses of every equipped item."""
        bonus = sum(
            item.bonuses.get(stat.value, 0)
            for item in self.equipment.values()
            if item is not None
        )
        return self.stats[stat.value] + bonus

    def find_item(self, item_id: str) -> Optional[Item]:
        for item in self.inventory:
            if item.id == item_id:
                return item
        return None

    def remove_item(self, item_id: str) -> Optional[Item]:
        item = self.find_item(item_id)
        if item is not None:
            self.inventory.remove(item)
        return item

    def total_ally_power(self) -> int:
        return sum(ally.power for ally in self.allies)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'level': self.level,
            'exp': self.exp,
            'exp_next': self.exp_next,
            'hp': self.hp,
            'max_hp': self.max_hp,
            'mp': self.mp,
            'max_mp': self.max_mp,
            'fatigue': self.fatigue,
            'stat_points': self.stat_points,
            'stats': dict(self.stats),
            'allies': [a.to_dict() for a in self.allies],
            'inventory': [i.to_dict() for i in self.inventory],
            'equipment': {
                slot: (item.to_dict() if item is not None else None)
                for slot, item in self.equipment.items()
            },
            'keys': self.keys,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        equipment = _empty_equipment()
        for slot, item_data in data.get('equipment', {}).items():
            if item_data is not None:
                item = item_from_dict(item_data)
                if not isinstance(item, EquipmentItem) or item.slot.value != slot:
                    raise ValueError(f"Item {item.id} cannot occupy slot {slot}")
                equipment[Slot(slot).value] = item

        stats = {Stat(k).value: int(v) for k, v in data['stats'].items()}
        return cls(
            level=data['level'],
            exp=data['exp'],
            exp_next=data['exp_next'],
            hp=data['hp'],
            max_hp=data['max_hp'],
            mp=data['mp'],
            max_mp=data['max_mp'],
            fatigue=data.get('fatigue', 0.0),
            stat_points=data.get('stat_points', 0),
            stats=stats,
            allies=[Ally.from_dict(a) for a in data.get('allies', [])],
            inventory=[item_from_dict(i) for i in data.get('inventory', [])],
            equipment=equipment,
            keys=data.get('keys', 0),
        )


# =============================================================================
# DAILY QUESTS
# =============================================================================

@dataclass
class RewardBundle:
    """Bonus rewards attached to harder daily quests."""

    potions: int = 0
    keys: int = 0
    runes: int = 0

    def is_empty(self) -> bool:
        return not (self.potions or self.keys or self.runes)

    def to_dict(self) -> Dict[str, Any]:
        return {'potions': self.potions, 'keys': self.keys, 'runes': self.runes}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RewardBundle':
        return cls(int(data.get('potions', 0)), int(data.get('keys', 0)), int(data.get('runes', 0)))


@dataclass
class DailyQuest:
    id: str
    name: str
    type: QuestType
    difficulty: Difficulty
    need: int
    have: int = 0
    exp_reward: int = 0
    gold_reward: int = 0
    bonus: Optional[RewardBundle] = None

    def __post_init__(self):
        self.type = QuestType(self.type)
        self.difficulty = Difficulty(self.difficulty)
        self.need = max(1, int(self.need))
        self.have = clamp(int(self.have), 0, self.need)

    @property
    def completed(self) -> bool:
        return self.have >= self.need

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type.value,
            'difficulty': self.difficulty.label,
            'need': self.need,
            'have': self.have,
            'exp_reward': self.exp_reward,
            'gold_reward': self.gold_reward,
            'bonus': self.bonus.to_dict() if self.bonus else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DailyQuest':
        bonus = data.get('bonus')
        return cls(
            id=str(data['id']),
            name=str(data['name']),
            type=QuestType(data['type']),
            difficulty=Difficulty.parse(data['difficulty']),
            need=int(data['need']),
            have=int(data.get('have', 0)),
            exp_reward=int(data.get('exp_reward', 0)),
            gold_reward=int(data.get('gold_reward', 0)),
            bonus=RewardBundle.from_dict(bonus) if bonus else None,
        )


@dataclass
class Daily:
    """The day's quest set. Reputation survives day rollover."""

    date: str = ''
    quests: List[DailyQuest] = field(default_factory=list)
    completed: bool = False
    forfeited: bool = False
    reputation: int = 0
    exp_awarded: int = 0

    def find_quest(self, quest_id: str) -> Optional[DailyQuest]:
        for quest in self.quests:
            if quest.id == quest_id:
                return quest
        return None

    def all_done(self) -> bool:
        return bool(self.quests) and all(q.completed for q in self.quests)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date,
            'quests': [q.to_dict() for q in self.quests],
            'completed': self.completed,
            'forfeited': self.forfeited,
            'reputation': self.reputation,
            'exp_awarded': self.exp_awarded,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Daily':
        return cls(
            date=str(data.get('date', '')),
            quests=[DailyQuest.from_dict(q) for q in data.get('quests', [])],
            completed=bool(data.get('completed', False)),
            forfeited=bool(data.get('forfeited', False)),
            reputation=max(0, int(data.get('reputation', 0))),
            exp_awarded=max(0, int(data.get('exp_awarded', 0))),
        )


# =============================================================================
# GAME TIME & RECORDS
# =============================================================================

@dataclass
class GameTime:
    day: int = 1
    current_date: str = ''
    last_reset: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'day': self.day, 'current_date': self.current_date, 'last_reset': self.last_reset}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameTime':
        return cls(max(1, int(data['day'])), str(data['current_date']), str(data.get('last_reset', '')))


@dataclass
class Records:
    """Lifetime statistics and unlocked achievements."""

    gates_completed: int = 0
    gates_failed: int = 0
    exp_gained: int = 0
    gold_gained: int = 0
    damage_dealt: int = 0
    damage_taken: int = 0
    allies_bound: int = 0
    dailies_completed: int = 0
    highest_rank: Optional[str] = None
    longest_combat: int = 0
    fastest_victory: Optional[int] = None
    achievements: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'gates_completed': self.gates_completed,
            'gates_failed': self.gates_failed,
            'exp_gained': self.exp_gained,
            'gold_gained': self.gold_gained,
            'damage_dealt': self.damage_dealt,
            'damage_taken': self.damage_taken,
            'allies_bound': self.allies_bound,
            'dailies_completed': self.dailies_completed,
            'highest_rank': self.highest_rank,
            'longest_combat': self.longest_combat,
            'fastest_victory': self.fastest_victory,
            'achievements': list(self.achievements),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Records':
        known = cls().to_dict()
        kwargs = {k: data[k] for k in known if k in data}
        kwargs['achievements'] = list(data.get('achievements', []))
        return cls(**kwargs)
