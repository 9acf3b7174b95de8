from pawcoach.data.catalog import Command
from pawcoach.decision.messages import get_training_insights, weekly_summary_text
from pawcoach.models.progress import ProgressRecord


def test_insights_for_fifty_sessions_on_one_mastered_command() -> None:
    insights = get_training_insights([ProgressRecord("sit", "mastered", 50)], 50)
    assert insights == [
        "🏆 You've mastered 1 commands (100% mastery rate)!",
        "⚡ Average 50.0 sessions per command. You're an efficient trainer!",
        "💪 50 sessions complete! You're a dedicated trainer.",
        '🎯 Next step: Try some manners commands like "Leave It"',
    ]


def test_mastery_rate_rounds_half_up() -> None:
    progress = [ProgressRecord("sit", "mastered")]
    progress += [ProgressRecord(cid) for cid in ("down", "stay", "come", "wait", "heel", "off", "spin")]
    insights = get_training_insights(progress, 0)
    assert insights[0] == "🏆 You've mastered 1 commands (13% mastery rate)!"


def test_efficiency_average_uses_one_decimal() -> None:
    progress = [ProgressRecord(cid) for cid in ("sit", "heel", "shake", "spin")]
    insights = get_training_insights(progress, 1)
    assert insights == ["⚡ Average 0.3 sessions per command. You're an efficient trainer!"]


def test_momentum_when_learning_outnumbers_mastered() -> None:
    progress = [
        ProgressRecord("sit", "mastered"),
        ProgressRecord("down", "learning", 2),
        ProgressRecord("heel", "learning", 1),
        ProgressRecord("shake"),
    ]
    insights = get_training_insights(progress, 0)
    assert "📈 Great momentum! You're actively learning 2 commands. Keep it up!" in insights
    assert not any(line.startswith("🎯") or line.startswith("🚀") for line in insights)


def test_no_efficiency_line_without_progress_records() -> None:
    assert get_training_insights([], 12) == []
    assert get_training_insights([], 0) == []


def test_five_mastered_milestone() -> None:
    progress = [ProgressRecord(cid, "mastered") for cid in ("sit", "down", "stay", "come", "wait")]
    assert "🌟 You've reached 5 mastered commands! Advanced training awaits." in get_training_insights(progress, 0)
    progress.append(ProgressRecord("spin", "mastered"))
    assert not any(line.startswith("🌟") for line in get_training_insights(progress, 0))


def test_category_balance_suggests_advanced_next() -> None:
    progress = [ProgressRecord("sit"), ProgressRecord("heel")]
    assert get_training_insights(progress, 0) == ['🚀 Ready for advanced commands? Try "Shake" or "Spin"']
    assert get_training_insights([ProgressRecord("shake")], 0) == []


def test_weekly_summary_text() -> None:
    week = {"Mon": 0, "Tue": 2, "Wed": 1, "Thu": 0, "Fri": 0, "Sat": 1, "Sun": 0}
    assert weekly_summary_text(week) == "This week: 4 sessions across 3 days, busiest on Tue (2)."
    assert weekly_summary_text({"Mon": 1}) == "This week: 1 session across 1 day, busiest on Mon (1)."
    assert weekly_summary_text(dict.fromkeys(week, 0)).startswith("This week: no training sessions yet.")


def test_average_rounds_the_stored_float() -> None:
    progress = [ProgressRecord(f"trick_{idx}") for idx in range(20)]
    # 29 / 20 is stored just below 1.45.
    assert get_training_insights(progress, 29) == [
        "⚡ Average 1.4 sessions per command. You're an efficient trainer!"
    ]


def test_first_catalog_entry_wins_for_duplicate_ids() -> None:
    catalog = [
        Command("sit", "Sit", "", "basic", 1, 5),
        Command("sit", "Sit Pretty", "", "manners", 2, 5),
    ]
    insights = get_training_insights([ProgressRecord("sit")], 0, catalog=catalog)
    assert insights == ['🎯 Next step: Try some manners commands like "Leave It"']
