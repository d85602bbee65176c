"""
Tests for event messages, lore and achievements.
"""

from messages import MessageEngine, render_message
from models import Records
from narrative import ACHIEVEMENTS, check_achievements, gate_flavour, lore_between, unlocked_lore

from conftest import make_test_gate


class TestMessageEngine:
    """Jinja2 message rendering."""

    def test_render_inline_template(self):
        line = render_message('combat/victory', gate='Gate X', exp=40, gold=1200)
        assert line == 'Cleared Gate X! +40 EXP, +1,200₲'

    def test_missing_template(self):
        assert render_message('nope/never') == "[Message 'nope/never' not found]"

    def test_percent_filter(self):
        line = render_message('binding/failed', chance=0.34)
        assert '34%' in line

    def test_file_override(self, tmp_path):
        (tmp_path / 'system').mkdir()
        (tmp_path / 'system' / 'welcome.j2').write_text('Bienvenue, {{ name }}.')

        engine = MessageEngine(template_dir=tmp_path)

        assert engine.render('system/welcome', {'name': 'Jin'}) == 'Bienvenue, Jin.'
        assert engine.render('system/loaded', {}).startswith('Game loaded')

    def test_boss_blocked_line(self):
        assert 'blocked' in render_message('combat/boss_hits', boss='Goblin', dmg=0)


class TestNarrative:
    """Lore unlocks, gate flavour, achievements."""

    def test_lore_between_levels(self):
        titles = [entry.level for entry in lore_between(1, 10)]
        assert titles == [5, 10]

    def test_unlocked_lore(self):
        assert len(unlocked_lore(1)) == 1
        assert len(unlocked_lore(100)) == 6

    def test_gate_flavour(self):
        flavour = gate_flavour(make_test_gate())
        assert 'cave' in flavour['environment']

    def test_achievements_unlock_once(self):
        records = Records(gates_completed=1)
        first = check_achievements(records)
        again = check_achievements(records)

        assert [a.id for a in first] == ['first_blood']
        assert again == []
        assert records.achievements == ['first_blood']

    def test_all_achievement_ids_unique(self):
        ids = [a.id for a in ACHIEVEMENTS]
        assert len(ids) == len(set(ids))
