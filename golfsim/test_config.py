"""Tests for environment configuration and logging setup."""

import json
import logging

from golfsim import config as config_module
from golfsim.config import CardValues, SimConfig, get_env_bool, get_env_int, reload_config
from golfsim.logging_config import ContextLogger, DevelopmentFormatter, JSONFormatter, get_logger


class TestEnvHelpers:

    def test_bool_values(self, monkeypatch):
        for raw in ("1", "true", "YES", "on"):
            monkeypatch.setenv("GOLF_FLAG", raw)
            assert get_env_bool("GOLF_FLAG") is True
        for raw in ("0", "false", "No", "off"):
            monkeypatch.setenv("GOLF_FLAG", raw)
            assert get_env_bool("GOLF_FLAG", True) is False

    def test_bool_default_when_unset_or_garbage(self, monkeypatch):
        monkeypatch.delenv("GOLF_FLAG", raising=False)
        assert get_env_bool("GOLF_FLAG", True) is True
        monkeypatch.setenv("GOLF_FLAG", "maybe")
        assert get_env_bool("GOLF_FLAG") is False

    def test_int_falls_back_on_garbage(self, monkeypatch):
        monkeypatch.setenv("GOLF_NUM", "12")
        assert get_env_int("GOLF_NUM", 3) == 12
        monkeypatch.setenv("GOLF_NUM", "twelve")
        assert get_env_int("GOLF_NUM", 3) == 3


class TestSimConfig:

    def test_defaults(self):
        cfg = SimConfig()
        assert cfg.SHUFFLE_PASSES == 10
        assert cfg.DEFAULT_GAMES == 100
        assert not cfg.DEBUG

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SHUFFLE_PASSES", "3")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("HISTORY_DB", "/tmp/other.db")
        monkeypatch.setenv("CARD_KING", "-1")

        cfg = SimConfig.from_env()
        assert cfg.SHUFFLE_PASSES == 3
        assert cfg.DEBUG
        assert cfg.HISTORY_DB == "/tmp/other.db"
        assert cfg.card_values["K"] == -1
        assert cfg.card_values.to_dict()["K"] == -1

    def test_shuffle_passes_at_least_one(self, monkeypatch):
        monkeypatch.setenv("SHUFFLE_PASSES", "0")
        assert SimConfig.from_env().SHUFFLE_PASSES == 1

    def test_reload_config(self, monkeypatch):
        monkeypatch.setattr(config_module, "config", config_module.config)
        monkeypatch.setenv("DEFAULT_GAMES", "25")
        assert reload_config().DEFAULT_GAMES == 25
        assert config_module.config.DEFAULT_GAMES == 25

    def test_card_values_cover_every_rank(self):
        assert set(CardValues().to_dict()) == set("23456789TJQKA")
        assert CardValues()["2"] == -2

    def test_stall_rounds(self, monkeypatch):
        assert SimConfig().STALL_ROUNDS == 50
        monkeypatch.setenv("STALL_ROUNDS", "7")
        assert SimConfig.from_env().STALL_ROUNDS == 7
        monkeypatch.setenv("STALL_ROUNDS", "0")
        assert SimConfig.from_env().STALL_ROUNDS == 1

    def test_modules_installed_under_package(self):
        import golfsim
        from golfsim import constants, game

        assert golfsim.__version__ == "0.1.0"
        assert config_module.__name__ == "golfsim.config"
        assert game.__name__ == "golfsim.game"
        assert constants.__name__ == "golfsim.constants"


class TestLogging:

    def make_record(self, **extra):
        record = logging.LogRecord("golf.test", logging.INFO, __file__, 1, "hello", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_formatter_includes_context(self):
        line = JSONFormatter().format(self.make_record(game_id="abc", seat=0, strategy="basic"))
        data = json.loads(line)
        assert data["message"] == "hello"
        assert data["game_id"] == "abc"
        assert data["seat"] == 0
        assert data["strategy"] == "basic"

    def test_development_formatter(self):
        line = DevelopmentFormatter().format(self.make_record(game_id="abcdef123456", seat=2))
        assert "game=abcdef12" in line
        assert "seat=2" in line
        assert line.endswith("hello")

    def test_with_context_merges(self):
        log = get_logger("golf.test").with_context(game_id="g1").with_context(seat=3)
        assert isinstance(log, ContextLogger)
        assert log.extra == {"game_id": "g1", "seat": 3}
