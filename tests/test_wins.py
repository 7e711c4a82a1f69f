from __future__ import annotations

from datetime import date

from prodkit import wins
from prodkit.wins import GRATITUDE, WIN, WinLog, detect_type, export_markdown


def _seed(log: WinLog, days: list[str]) -> None:
    log.store.write({"entries": [
        {"text": f"win on {d}", "type": WIN, "date": d, "timestamp": f"{d} 10:00:00"} for d in days
    ]})


def test_detect_type():
    assert detect_type("Grateful for coffee") == GRATITUDE
    assert detect_type("  thankful for sun") == GRATITUDE
    assert detect_type("shipped v2") == WIN


def test_add_counts_entries(data_dir):
    log = WinLog(data_dir / "wins")
    entry, total = log.add("fixed the build")
    assert (entry.type, total) == (WIN, 1)
    entry, total = log.add("glad it is friday")
    assert (entry.type, total) == (GRATITUDE, 2)


def test_streaks(data_dir):
    log = WinLog(data_dir / "wins")
    _seed(log, ["2026-03-01", "2026-03-02", "2026-03-03", "2026-03-10", "2026-03-11"])
    assert log.streaks(today=date(2026, 3, 11)) == (2, 3)
    assert log.streaks(today=date(2026, 3, 20)) == (0, 3)


def test_since_and_search(data_dir):
    log = WinLog(data_dir / "wins")
    _seed(log, ["2026-03-01", "2026-03-08", "2026-03-14"])
    assert [e.date for e in log.since(7, today=date(2026, 3, 14))] == ["2026-03-08", "2026-03-14"]
    assert [e.date for e in log.search("ON 2026-03-01")] == ["2026-03-01"]


def test_export_markdown_groups_by_day():
    entries = [
        wins.Entry("shipped", WIN, "2026-03-14", ""),
        wins.Entry("grateful for tea", GRATITUDE, "2026-03-14", ""),
        wins.Entry("older", WIN, "2026-03-10", ""),
    ]
    text = export_markdown(entries, 30)
    assert text.startswith("# Wins & Gratitude (last 30 days)")
    assert text.index("## 2026-03-14") < text.index("## 2026-03-10")
    assert "**Gratitude:**\n- grateful for tea" in text


def test_cli_fallback_and_today(runner):
    result = runner.invoke(wins.cli, ["shipped", "the", "release"])
    assert result.exit_code == 0
    assert "Win logged: shipped the release" in result.output

    result = runner.invoke(wins.cli, ["grateful", "sunny", "day"])
    assert "Gratitude logged: sunny day" in result.output

    result = runner.invoke(wins.cli, [])
    assert "Wins:" in result.output
    assert "🏆 shipped the release" in result.output
    assert "✨ sunny day" in result.output


def test_cli_milestone(runner):
    for i in range(10):
        result = runner.invoke(wins.cli, ["win", f"thing {i}"])
    assert "Milestone: You've logged 10 entries!" in result.output


def test_cli_empty(runner):
    result = runner.invoke(wins.cli, ["today"])
    assert "No entries today yet." in result.output
    result = runner.invoke(wins.cli, ["random"])
    assert "No entries yet." in result.output
