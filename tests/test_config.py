from __future__ import annotations

import json
import math

import pytest
from pydantic import ValidationError

from conftest import TOKYO
from models import WadokeiQueryParams
from wadokei._types import DialMode
from wadokei.config import (
    CONFIG_ENV_VAR,
    KANSEI_TWILIGHT_ALTITUDE_DEG,
    ConfigError,
    TwilightSettings,
    WadokeiConfig,
    check_timezone,
    load_config,
)


def test_defaults():
    config = WadokeiConfig()
    assert (config.lat, config.lon) == (35.6812, 139.7671)
    assert config.tzinfo == TOKYO
    assert config.dial_mode is DialMode.noon_up
    assert config.hand_plugin == config.backplane_plugin == "default"
    assert config.twilight.target_altitude_deg == KANSEI_TWILIGHT_ALTITUDE_DEG
    assert config.twilight.target_altitude_rad == pytest.approx(math.radians(-7.361))
    assert config.twilight.search_window_minutes == 60
    assert config.twilight.sample_step_minutes == 1


def test_json_uses_camel_case_aliases():
    config = WadokeiConfig.model_validate_json(
        json.dumps({"dialMode": "子上", "handPlugin": "pkg.mod:hand", "lat": 34.69})
    )
    assert config.dial_mode is DialMode.midnight_up
    assert config.hand_plugin == "pkg.mod:hand"
    assert config.lat == 34.69


def test_field_names_are_accepted():
    assert WadokeiConfig(dial_mode="子上").dial_mode is DialMode.midnight_up


@pytest.mark.parametrize(
    "payload",
    [
        {"timezone": "Mars/Olympus_Mons"},
        {"dialMode": "卯上"},
        {"lat": 91},
        {"lon": -181},
        {"twilight": {"target_altitude_deg": 3.0}},
        {"twilight": {"sample_step_minutes": 0}},
    ],
)
def test_invalid_values_are_rejected(payload):
    with pytest.raises(ValidationError):
        WadokeiConfig.model_validate(payload)


def test_config_is_frozen():
    config = WadokeiConfig()
    with pytest.raises(ValidationError):
        config.lat = 0.0


def test_twilight_settings_override():
    settings = TwilightSettings(target_altitude_deg=-6.0, search_window_minutes=90)
    assert settings.target_altitude_rad == pytest.approx(math.radians(-6.0))
    assert settings.search_window_minutes == 90


class TestLoadConfig:
    def test_no_source_gives_defaults(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert load_config() == WadokeiConfig()

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "wadokei.json"
        path.write_text(
            json.dumps({"timezone": "Europe/Oslo", "dialMode": "子上"}, ensure_ascii=False),
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.timezone == "Europe/Oslo"
        assert config.dial_mode is DialMode.midnight_up

    def test_environment_variable(self, tmp_path, monkeypatch):
        path = tmp_path / "env.json"
        path.write_text(json.dumps({"lat": 43.06, "lon": 141.35}), encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        config = load_config()
        assert (config.lat, config.lon) == (43.06, 141.35)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "absent.json")

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"timezone": "Nowhere/Special"}', encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)


class TestTimezoneCheck:
    def test_known_zone_is_returned(self):
        assert check_timezone("Asia/Tokyo") == "Asia/Tokyo"

    @pytest.mark.parametrize("value", ["Mars/Olympus_Mons", "", "../etc/passwd"])
    def test_unknown_zone_is_rejected(self, value):
        with pytest.raises(ValueError, match="Unknown time zone"):
            check_timezone(value)

    def test_config_and_query_params_agree(self):
        for build in (
            lambda tz: WadokeiConfig(timezone=tz),
            lambda tz: WadokeiQueryParams(lat=0.0, lon=0.0, tz=tz),
        ):
            assert build("Europe/Oslo")
            with pytest.raises(ValidationError, match="Unknown time zone: Nowhere/Special"):
                build("Nowhere/Special")
