import math

import pytest

from managers import config_manager
from managers.config_manager import ConfigManager
from models.config import GameConfig, PhysicsParams
from models.enums import MatrixEncoding, SeedPattern
from models.errors import ConfigError


class TestGameConfig:

    def test_defaults_are_valid(self):
        config = GameConfig().validate()

        assert config.balls_per_team == 2
        assert config.fps == 32
        assert config.brightness == 50
        assert (config.grid_width, config.grid_height) == (9, 34)

    def test_dual_geometry_and_pattern(self):
        config = GameConfig(dual_mode=True)

        assert config.panel_count == 2
        assert config.grid_width == 18
        assert config.resolved_seed_pattern is SeedPattern.VERTICAL
        assert GameConfig().resolved_seed_pattern is SeedPattern.HORIZONTAL

    @pytest.mark.parametrize("changes", [
        {"balls_per_team": 0},
        {"balls_per_team": 6},
        {"fps": 0},
        {"fps": 121},
        {"brightness": 101},
        {"dim_level": 256},
        {"baud_rate": 0},
        {"fps_ceiling": 0},
        {"physics": PhysicsParams(min_speed=10.0)},
        {"physics": PhysicsParams(angle_jitter=-0.1)},
    ])
    def test_out_of_range_is_rejected(self, changes):
        with pytest.raises(ConfigError):
            GameConfig(**changes).validate()

    def test_from_dict_reads_sections(self):
        config = GameConfig.from_dict({
            "game": {"dual_mode": True, "balls_per_team": 3, "seed": 9, "seed_pattern": "Horizontal"},
            "render": {"fps": 20, "brightness": 80},
            "matrix": {"encoding": "bw", "fps_ceiling": 12},
            "physics": {"base_speed": 8, "tile_bounce": False},
            "debug": True,
        })

        assert config.dual_mode is True
        assert config.balls_per_team == 3
        assert config.seed == 9
        assert config.seed_pattern is SeedPattern.HORIZONTAL
        assert config.fps == 20
        assert config.encoding is MatrixEncoding.BW
        assert config.fps_ceiling == 12
        assert config.physics.base_speed == 8.0
        assert config.physics.tile_bounce is False
        assert config.debug is True

    def test_from_dict_empty_gives_defaults(self):
        assert GameConfig.from_dict(None) == GameConfig()

    @pytest.mark.parametrize("data", [
        {"graphics": {}},
        {"game": {"colour": "red"}},
        {"game": {"balls_per_team": "two"}},
        {"game": {"balls_per_team": 2.5}},
        {"game": {"dual_mode": "yes"}},
        {"render": {"fps": None}},
        {"matrix": {"encoding": "rgb"}},
        {"render": [1, 2]},
    ])
    def test_from_dict_rejects_bad_data(self, data):
        with pytest.raises(ConfigError):
            GameConfig.from_dict(data)


class TestConfigManager:

    def test_shipped_config_matches_defaults(self):
        manager = ConfigManager()
        manager.load()
        config = manager.build()

        defaults = GameConfig()
        assert config.fps == defaults.fps
        assert config.balls_per_team == defaults.balls_per_team
        assert config.seed_pattern is SeedPattern.AUTO
        assert math.isclose(config.physics.start_jitter, defaults.physics.start_jitter, abs_tol=1e-4)

    def test_missing_default_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config_manager, "DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")
        manager = ConfigManager()

        assert manager.load() == {}
        assert manager.build() == GameConfig()

    def test_missing_explicit_file_is_error(self, tmp_path):
        with pytest.raises(ConfigError):
            ConfigManager(tmp_path / "missing.yaml").load()

    def test_malformed_yaml_is_error(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("game: [unclosed\n")

        with pytest.raises(ConfigError):
            ConfigManager(path).load()

    def test_non_mapping_is_error(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ConfigError):
            ConfigManager(path).load()

    def test_includes_are_merged_under_main_file(self, tmp_path):
        (tmp_path / "physics.yaml").write_text("physics:\n  base_speed: 7.0\n  min_speed: 5.0\n")
        (tmp_path / "render.yaml").write_text("render:\n  fps: 10\n  brightness: 30\n")
        main = tmp_path / "main.yaml"
        main.write_text("include:\n  - physics.yaml\n  - render.yaml\nrender:\n  fps: 25\n")

        manager = ConfigManager(main)
        manager.load()
        config = manager.build()

        assert config.physics.base_speed == 7.0
        assert config.fps == 25
        assert config.brightness == 30

    def test_overrides_win_and_none_is_ignored(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text("render:\n  fps: 10\ngame:\n  balls_per_team: 3\n")
        manager = ConfigManager(path)
        manager.load()

        config = manager.build(fps=40, balls_per_team=None, dual_mode=True)

        assert config.fps == 40
        assert config.balls_per_team == 3
        assert config.dual_mode is True

    def test_invalid_override(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config_manager, "DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")
        manager = ConfigManager()
        manager.load()

        with pytest.raises(ConfigError):
            manager.build(balls_per_team=9)
        with pytest.raises(ConfigError):
            manager.build(colour="red")
