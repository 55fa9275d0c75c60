from __future__ import annotations

from metayoinker.config import AppConfig, load_config, save_config


def test_load_config_missing_file(tmp_path) -> None:
    path = tmp_path / "config.json"
    config, error = load_config(path)
    assert error is None
    assert config == AppConfig()


def test_save_and_load_config_roundtrip(tmp_path) -> None:
    path = tmp_path / "nested" / "config.json"
    config = AppConfig(
        last_open_dir="/home/user/sprites",
        last_save_dir="/home/user/out",
        preview_scale=3,
        notification_seconds=2.5,
        log_level="DEBUG",
    )
    error = save_config(config, path)
    assert error is None
    loaded, error = load_config(path)
    assert error is None
    assert loaded == config


def test_load_config_invalid_json(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not-json", encoding="utf-8")
    config, error = load_config(path)
    assert config == AppConfig()
    assert error is not None


def test_load_config_drops_invalid_values(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        '{"preview_scale": 0, "notification_seconds": true, "last_save_dir": "  "}',
        encoding="utf-8",
    )
    config, error = load_config(path)
    assert error is None
    assert config == AppConfig()
