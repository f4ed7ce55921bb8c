import pytest

from geoglobe.config import (
    EARTH_RADIUS,
    GlobeConfig,
    MaterialPreset,
    config_from_mapping,
    load_config,
)
from geoglobe.errors import ConfigError


class TestGlobeConfig:
    def test_defaults(self):
        cfg = GlobeConfig()
        assert cfg.radius == EARTH_RADIUS
        assert cfg.line_sampler == "great-circle"
        assert cfg.material("point").color == "#ffff00"
        assert cfg.material("line").size == 1.0

    def test_frozen(self):
        with pytest.raises(AttributeError):
            GlobeConfig().radius = 1.0

    @pytest.mark.parametrize("kwargs", [
        {"radius": 0},
        {"surface_inflation": 0.5},
        {"line_sampler": "rhumb"},
        {"ring_divisions": 0},
        {"line_density": -1.0},
        {"tessellate_max_area": 0.0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigError):
            GlobeConfig(**kwargs)

    def test_unknown_family(self):
        with pytest.raises(ConfigError):
            GlobeConfig().material("volume")


class TestConfigFromMapping:
    def test_overrides(self):
        cfg = config_from_mapping({
            "radius": 50,
            "atmosphere": False,
            "line_sampler": "linear",
            "window_size": [800, 600],
            "point_material": {"color": "red"},
        })
        assert cfg.radius == 50.0
        assert cfg.atmosphere is False
        assert cfg.line_sampler == "linear"
        assert cfg.window_size == (800, 600)
        assert cfg.point_material == MaterialPreset(color="red", size=2.0)

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="radiuss"):
            config_from_mapping({"radiuss": 1})

    @pytest.mark.parametrize("raw", [
        {"radius": "big"},
        {"atmosphere": "yes"},
        {"sphere_resolution": 1.5},
        {"tessellate_passes": True},
        {"window_size": [800]},
        {"line_material": "white"},
    ])
    def test_wrong_types(self, raw):
        with pytest.raises(ConfigError):
            config_from_mapping(raw)


class TestLoadConfig:
    def test_yaml_file(self, tmp_path):
        path = tmp_path / "globe.yaml"
        path.write_text("radius: 120\nline_density: 4\n", encoding="utf-8")
        cfg = load_config(path)
        assert cfg.radius == 120.0
        assert cfg.line_density == 4.0

    def test_globe_section(self, tmp_path):
        path = tmp_path / "globe.yaml"
        path.write_text("globe:\n  sphere_resolution: 32\n", encoding="utf-8")
        assert load_config(path).sphere_resolution == 32

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == GlobeConfig()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("radius: [1, 2\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)
