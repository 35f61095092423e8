"""
Tests for the runecraft command line.
"""

import json

import pytest

from runecraft.data_models import RuneCode
from runecraft.main import EngineConfig, RunecraftEngine, main, parse_arguments


def _run(capsys, *argv):
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured


class TestParseArguments:
    """Argument parsing."""

    def test_evolutions_options(self):
        """Flags repeat; name and familiarity are optional."""
        args = parse_arguments([
            "evolutions", "FAR", "--flag", "a", "--flag", "b", "--name", "Ember Ray", "--familiarity", "0.6",
        ])
        assert args.command == "evolutions"
        assert args.flags == ["a", "b"]
        assert args.name == "Ember Ray"
        assert args.familiarity == 0.6

    def test_shared_options_after_subcommand(self, tmp_path):
        """Content and verbosity options follow the subcommand."""
        args = parse_arguments(["runes", "-v", "--rules-file", str(tmp_path / "r.json")])
        assert args.verbose is True
        assert args.rules_file == tmp_path / "r.json"

    def test_command_required(self):
        """A subcommand is required."""
        with pytest.raises(SystemExit):
            parse_arguments([])

    def test_engine_config_paths(self):
        """String paths are coerced to Path."""
        config = EngineConfig(runes_file="runes.json", rules_file="rules.json")
        assert config.runes_file.name == "runes.json"
        assert config.rules_file.suffix == ".json"


class TestCommands:
    """End-to-end CLI runs."""

    def test_runes(self, capsys):
        """runes lists the whole alphabet."""
        code, captured = _run(capsys, "runes")
        assert code == 0
        runes = json.loads(captured.out)
        assert [r["code"] for r in runes][:3] == ["A", "B", "C"]
        assert len(runes) == 26

    def test_evaluate(self, capsys):
        """evaluate prints the snapshot and combat stats."""
        code, captured = _run(capsys, "evaluate", "far")
        assert code == 0
        result = json.loads(captured.out)
        assert result["runes"] == "FAR"
        assert result["evaluation"]["power"] == pytest.approx(2.9)
        assert result["evaluation"]["instability"] == pytest.approx(0.07)
        assert result["evaluation"]["cost"] == pytest.approx(13)
        assert result["total_damage"] == pytest.approx(12.9)

    def test_evolutions(self, capsys):
        """evolutions lists Ember Ray for F, A, R."""
        code, captured = _run(capsys, "evolutions", "FAR")
        assert code == 0
        options = json.loads(captured.out)
        assert [o["id"] for o in options] == ["ember_ray"]

    def test_chained_evolution(self, capsys):
        """A named, familiar spell with the boss flag is offered only Searing Ember Ray."""
        code, captured = _run(
            capsys,
            "evolutions", "FAR",
            "--name", "Ember Ray",
            "--familiarity", "0.6",
            "--flag", "boss_fire_1_defeated",
        )
        assert code == 0
        ids = [o["id"] for o in json.loads(captured.out)]
        assert ids == ["searing_ember_ray"]

    def test_unknown_rune(self, capsys):
        """Bad input exits with status 2 and a message on stderr."""
        code, captured = _run(capsys, "evaluate", "F4R")
        assert code == 2
        assert "Unknown rune symbol" in captured.err
        assert captured.out == ""

    def test_rules_file_override(self, capsys, tmp_path):
        """A rules file changes the computed values."""
        rules = tmp_path / "rules.json"
        rules.write_text(json.dumps({"vowel_penalty_max": 0.0}), encoding="utf-8")
        code, captured = _run(capsys, "evaluate", "FAR", "--rules-file", str(rules))
        assert code == 0
        assert json.loads(captured.out)["evaluation"]["instability"] == pytest.approx(0.067)

    def test_bad_runes_file(self, capsys, tmp_path):
        """An incomplete rune file is reported, not raised."""
        runes = tmp_path / "runes.json"
        runes.write_text(json.dumps({"items": []}), encoding="utf-8")
        code, captured = _run(capsys, "runes", "--runes-file", str(runes))
        assert code == 2
        assert "error:" in captured.err


class TestEngine:
    """RunecraftEngine wiring."""

    def test_engine_uses_its_own_run_log(self):
        """Engine events go to the engine's RunLog."""
        engine = RunecraftEngine()
        engine.evaluate("FAR")
        assert engine.run_log.get_event_count() == 1

    def test_familiarity_applies_to_sequence_runes(self):
        """The neutral player gets familiarity on the given runes only."""
        engine = RunecraftEngine()
        player = engine.neutral_player(0.5, "FA")
        assert set(player.affinity) == {RuneCode.F, RuneCode.A}
        assert engine.neutral_player().affinity == {}
