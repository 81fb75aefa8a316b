import os
import sys

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

import main
from colony.settings import MAP_SIZES


def test_basic_flag_turns_off_extended_layers():
    args = main.build_parser().parse_args(["--basic", "--map-size", "small", "--no-ai", "--seed", "4"])
    config = main.config_from_args(args)
    assert config.map_size == MAP_SIZES["Small"]
    assert not config.ai_enabled
    assert not config.life_support
    assert not config.rough_terrain
    assert not config.organic_growth
    assert config.seed == 4


def test_defaults_enable_everything():
    config = main.config_from_args(main.build_parser().parse_args([]))
    assert config.ai_enabled and config.life_support and config.rough_terrain
    assert not config.auto_growth


def test_headless_run_prints_summary(monkeypatch, capsys):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    code = main.main(["--headless", "--no-ai", "--ticks", "3", "--seed", "1"])
    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("Sol 4:")
    assert "Colony initialization complete." in out
