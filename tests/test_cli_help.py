from __future__ import annotations

import pytest

import metayoinker.app as app_module
from metayoinker.app import _cli_help_text, main
from metayoinker.config import AppConfig
from metayoinker.dmi import decode
from metayoinker.paths import config_path

from conftest import DESCRIPTION


@pytest.fixture
def quiet_cli(monkeypatch) -> None:
    monkeypatch.setattr(app_module, "load_config", lambda: (AppConfig(), None))
    monkeypatch.setattr(app_module, "configure_logging", lambda *args, **kwargs: None)


def test_cli_help_text_includes_config_path() -> None:
    text = _cli_help_text()
    assert "--copy-from" in text
    assert str(config_path()) in text


def test_main_help_flag_prints_help(capsys) -> None:
    main(["-help"])
    captured = capsys.readouterr()
    assert "metayoinker" in captured.out


def test_show_prints_metadata(quiet_cli, make_dmi, write_file, capsys) -> None:
    path = write_file("mob.dmi", make_dmi())
    with pytest.raises(SystemExit) as excinfo:
        main(["--show", str(path)])
    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert out.startswith("# mob.dmi\n# BEGIN DMI")
    assert "DMI v4.0, 32x32, 2 states, 12 icons" in out


def test_copy_paste_writes_new_file(quiet_cli, make_dmi, write_file, tmp_path, capsys) -> None:
    source = write_file("source.dmi", make_dmi())
    target = write_file("target.png", make_dmi(description=None))
    original = target.read_bytes()

    with pytest.raises(SystemExit) as excinfo:
        main(["--copy-from", str(source), "--paste-into", str(target)])

    assert excinfo.value.code == 0
    output = tmp_path / "target.dmi"
    assert decode(output.read_bytes()).metadata.text() == DESCRIPTION
    assert target.read_bytes() == original
    out = capsys.readouterr().out
    assert "Copied metadata for source.dmi" in out
    assert "Downloaded target.dmi" in out


def test_copy_paste_refuses_to_overwrite(quiet_cli, make_dmi, write_file, capsys) -> None:
    source = write_file("source.dmi", make_dmi())
    target = write_file("target.dmi", make_dmi(description="other"))
    original = target.read_bytes()

    with pytest.raises(SystemExit) as excinfo:
        main(["--copy-from", str(source), "--paste-into", str(target)])

    assert excinfo.value.code == 1
    assert target.read_bytes() == original
    assert "--output" in capsys.readouterr().err


def test_copy_paste_with_output(quiet_cli, make_dmi, write_file, tmp_path) -> None:
    source = write_file("source.dmi", make_dmi())
    target = write_file("target.dmi", make_dmi(description="other"))
    output = tmp_path / "out" / "patched"

    with pytest.raises(SystemExit) as excinfo:
        main(["--copy-from", str(source), "--paste-into", str(target), "--output", str(output)])

    assert excinfo.value.code == 0
    written = tmp_path / "out" / "patched.dmi"
    assert decode(written.read_bytes()).metadata.text() == DESCRIPTION


def test_copy_from_file_without_metadata_fails(quiet_cli, make_dmi, write_file, capsys) -> None:
    source = write_file("bare.png", make_dmi(description=None))
    target = write_file("target.png", make_dmi(description=None))

    with pytest.raises(SystemExit) as excinfo:
        main(["--copy-from", str(source), "--paste-into", str(target)])

    assert excinfo.value.code == 1
    assert "has no metadata" in capsys.readouterr().err


def test_paste_into_requires_copy_from(quiet_cli, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--paste-into", "target.dmi"])
    assert excinfo.value.code == 2
