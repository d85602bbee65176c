"""
Tests for daily quest generation and progress.
"""

from content.quests import (
    QUESTS_PER_DAY, generate_daily_quests, make_quest, new_daily,
    progress_quest, unlocked_difficulties,
)
from models import Daily, Difficulty, QuestType
from rng import SeededRandom


def finish_quest(daily, quest):
    result = None
    for _ in range(quest.need):
        result = progress_quest(daily, quest.id)
    return result


class TestGeneration:
    """Five quests a day, unlocked difficulties only."""

    def test_five_quests(self):
        quests = generate_daily_quests(1, 0, SeededRandom(1))
        assert len(quests) == QUESTS_PER_DAY

    def test_no_type_repeated_back_to_back(self):
        for seed in range(25):
            quests = generate_daily_quests(10, 30, SeededRandom(seed))
            for previous, current in zip(quests, quests[1:]):
                assert previous.type != current.type

    def test_level_one_is_easy_only(self):
        assert unlocked_difficulties(1, 0) == [Difficulty.EASY]
        quests = generate_daily_quests(1, 0, SeededRandom(4))
        assert {q.difficulty for q in quests} == {Difficulty.EASY}

    def test_harder_tiers_need_reputation(self):
        assert Difficulty.HARD not in unlocked_difficulties(8, 0)
        assert Difficulty.HARD in unlocked_difficulties(8, 25)
        assert Difficulty.EPIC in unlocked_difficulties(15, 75)

    def test_make_quest_scaling(self):
        """Endurance Trial at level 1: need floor(2 * 1.1), exp floor(30 * 1.15)."""
        quest = make_quest(QuestType.CHALLENGE, Difficulty.EASY, 1)
        assert quest.need == 2
        assert quest.exp_reward == 34
        assert quest.bonus is None

    def test_epic_quest_has_bonus_bundle(self):
        quest = make_quest(QuestType.CHALLENGE, Difficulty.EPIC, 15)
        assert quest.bonus is not None
        assert quest.bonus.keys == 1

    def test_new_daily_keeps_reputation(self):
        daily = new_daily('2024-01-02', 3, 40, SeededRandom(2))
        assert daily.reputation == 40
        assert daily.date == '2024-01-02'
        assert not daily.completed


class TestProgress:
    """Advancing quests and completing the set."""

    def test_progress_single_step(self):
        daily = new_daily('2024-01-01', 1, 0, SeededRandom(9))
        quest = daily.quests[0]
        result = progress_quest(daily, quest.id)

        assert quest.have == 1
        assert not result.quest_completed

    def test_quest_completion_tracks_exp(self):
        daily = new_daily('2024-01-01', 1, 0, SeededRandom(9))
        quest = daily.quests[0]
        result = finish_quest(daily, quest)

        assert result.quest_completed
        assert daily.exp_awarded == quest.exp_reward
        assert progress_quest(daily, quest.id) is None

    def test_set_completion_awards_reputation(self):
        daily = new_daily('2024-01-01', 1, 5, SeededRandom(9))
        results = [finish_quest(daily, quest) for quest in daily.quests]

        final = results[-1]
        expected = sum(q.exp_reward for q in daily.quests) // 10
        assert final.set_completed
        assert final.reputation_gained == expected
        assert daily.reputation == 5 + expected
        assert daily.completed
        assert not any(r.set_completed for r in results[:-1])

    def test_unknown_quest(self):
        daily = new_daily('2024-01-01', 1, 0, SeededRandom(9))
        assert progress_quest(daily, 'missing') is None

    def test_forfeited_set_is_closed(self):
        daily = new_daily('2024-01-01', 1, 0, SeededRandom(9))
        daily.forfeited = True
        assert progress_quest(daily, daily.quests[0].id) is None

    def test_empty_daily_never_done(self):
        assert not Daily().all_done()
