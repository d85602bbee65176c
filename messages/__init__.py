"""
Event message templates for Hunter's Path.

Jinja2-based templates for every user-visible log line the engine emits.
"""

from pathlib import Path
from typing import Dict, Any, Optional
import os

from jinja2 import ChoiceLoader, DictLoader, Environment, FileSystemLoader, TemplateNotFound

# Optional directory of .j2 files that override the inline messages
MESSAGE_DIR_ENV = 'HUNTERS_PATH_MESSAGE_DIR'


class MessageEngine:
    """
    Jinja2-based message engine.

    Loads inline templates, optionally overridden by files from a directory
    (e.g. a translation), and renders them into log lines.
    """

    def __init__(self, template_dir: Optional[Path] = None):
        if template_dir is None and os.environ.get(MESSAGE_DIR_ENV):
            template_dir = Path(os.environ[MESSAGE_DIR_ENV])
        self.template_dir = template_dir

        loaders = [DictLoader(DEFAULT_TEMPLATES)]
        if self.template_dir is not None and self.template_dir.exists():
            loaders.insert(0, FileSystemLoader(str(self.template_dir)))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=False,
        )

        # Register custom filters
        self.env.filters['gold'] = self._format_gold
        self.env.filters['pct'] = self._format_percent

    def _format_gold(self, value) -> str:
        """Format an amount of gold."""
        try:
            return f"{int(value):,}₲"
        except (ValueError, TypeError):
            return f"{value}₲"

    def _format_percent(self, value) -> str:
        """Format a 0-1 probability as a percentage."""
        try:
            return f"{float(value) * 100:.0f}%"
        except (ValueError, TypeError):
            return f"{value}%"

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render a template with context into a single stripped line."""
        # Override files carry a .j2 suffix; inline defaults do not
        for candidate in (f"{template_name}.j2", template_name):
            try:
                template = self.env.get_template(candidate)
                break
            except TemplateNotFound:
                continue
        else:
            return f"[Message '{template_name}' not found]"
        return template.render(**context).strip()


# =============================================================================
# INLINE TEMPLATES
# =============================================================================

DEFAULT_TEMPLATES = {
    # System
    'system/welcome': "Welcome, Hunter. Complete your Daily Quest, then clear a Gate.",
    'system/loaded': "Game loaded. Welcome back, Hunter!",
    'system/corrupt_save': "Save data was unreadable. Starting a fresh hunt.",
    'system/rejected_in_combat': "You cannot {{ action }} while inside a gate.",

    # Combat
    'combat/enter': "Entered {{ gate }}. A {{ rank }}-rank boss appears: {{ boss }}!",
    'combat/flavour': "{{ environment }} {{ sound }}",
    'combat/result_pending': "Dismiss the last combat result first.",
    'combat/unknown_gate': "No gate with id {{ gate_id }} is open.",
    'combat/hunter_hits': "Hunter attacks for {{ dmg }} damage!{% if critical %} Critical hit!{% endif %}",
    'combat/boss_hits': "{% if dmg > 0 %}{{ boss }} attacks for {{ dmg }} damage!{% else %}{{ boss }}'s attack is blocked!{% endif %}",
    'combat/upkeep': "Your spirits draw {{ upkeep }} MP.",
    'combat/victory': "Cleared {{ gate }}! +{{ exp }} EXP, +{{ gold | gold }}",
    'combat/defeat': "You were defeated in {{ gate }}. Lost {{ lost | gold }}. Rest and try again.",
    'combat/no_session': "There is no battle in progress.",
    'combat/dismissed': "You leave {{ gate }} behind.",
    'combat/nothing_to_dismiss': "There is no combat result to dismiss.",
    'combat/abandoned': "You retreat from {{ gate }}.",
    'combat/nothing_to_abandon': "You are not inside a gate.",

    # Loot & binding
    'loot/found': "Found: {{ item }}{% if rarity %} ({{ rarity }}, Q{{ quality }}){% endif %}",
    'loot/key': "Found: Instant Dungeon Key. You now hold {{ keys }}.",
    'binding/success': "Spirit Binding succeeded! {{ name }} ({{ rarity }} {{ role }}) joins you (+{{ power }} power).",
    'binding/failed': "Binding failed at {{ chance | pct }} odds. The spirit crumbles to dust.",

    # Gates
    'gates/regenerated': "New gates appeared! {{ count }} gates are open.",
    'gates/refreshed': "Gates refreshed! (-{{ cost | gold }})",
    'keys/none': "You have no Instant Dungeon Keys.",
    'keys/used': "You turn an Instant Dungeon Key. {{ keys }} left.",

    # Progression
    'progress/level_up': "Level Up! Welcome to level {{ level }}. +{{ points }} stat points!",
    'progress/allocated': "+1 {{ stat }} (now {{ value }}). {{ points }} point{{ 's' if points != 1 }} left.",
    'progress/no_points': "You have no stat points to spend.",
    'progress/unknown_stat': "There is no stat called '{{ stat }}'.",
    'rest/done': "You took a rest. +{{ hp }} HP, +{{ mp }} MP, -{{ fatigue }} fatigue.",
    'train/done': "{{ message }} +{{ exp }} EXP",
    'train/unknown': "There is no '{{ kind }}' training.",
    'work/done': "Work complete. +{{ gold | gold }}, +{{ exp }} EXP (but more fatigue)",
    'lore/unlocked': "Lore unlocked: {{ title }}",
    'achievement/unlocked': "Achievement Unlocked: {{ name }}!",

    # Items
    'items/not_found': "You do not have that item.",
    'items/potion': "You used {{ item }}. +{{ hp }} HP, +{{ mp }} MP.",
    'items/rune': "Used {{ item }}! +{{ bonus }} {{ stat }} permanently.",
    'items/equip_instead': "{{ item }} is equipment. Equip it instead.",
    'items/equipped': "Equipped {{ item }} ({{ slot }}).{% if replaced %} {{ replaced }} returns to your pack.{% endif %}",
    'items/not_equipment': "{{ item }} cannot be equipped.",
    'items/unequipped': "Unequipped {{ item }}.",
    'items/slot_empty': "Nothing is equipped in the {{ slot }} slot.",
    'items/unknown_slot': "There is no '{{ slot }}' slot.",
    'items/sold': "Sold {{ item }} for {{ value | gold }}.",

    # Shop
    'shop/bought': "Purchased {{ item }} for {{ cost | gold }}.",
    'shop/unknown': "The shop does not sell '{{ kind }}'.",
    'shop/no_gold': "Not enough gold. Need {{ cost | gold }} for {{ what }}.",

    # Daily quests
    'daily/progress': "{{ quest }}: {{ have }}/{{ need }}",
    'daily/quest_done': "Quest complete: {{ quest }}! +{{ exp }} EXP, +{{ gold | gold }}{% if bonus %} plus a bonus bundle{% endif %}.",
    'daily/set_done': "Daily Quest set completed! +{{ reputation }} quest reputation.",
    'daily/closed': "Today's quests are already settled.",
    'daily/unknown_quest': "No open quest with id {{ quest_id }}.",
    'daily/forfeit': "Penalty Zone: you pushed boulders for hours. HP to a sliver; fatigue up.",
    'day/new': "Day {{ day }} begins. New daily quests are available.",
    'day/passive_exp': "+{{ exp }} EXP for surviving another day",
}


# Global message engine instance
_engine: Optional[MessageEngine] = None


def get_message_engine() -> MessageEngine:
    """Get or create the global message engine."""
    global _engine
    if _engine is None:
        _engine = MessageEngine()
    return _engine


def render_message(template_name: str, **context) -> str:
    """Convenience function to render a message."""
    return get_message_engine().render(template_name, context)
