from __future__ import annotations

import asyncio
from pathlib import Path

import metayoinker.app as app_module
from textual.widgets import Input

from metayoinker.app import MetaYoinkerApp
from metayoinker.config import AppConfig
from metayoinker.dmi import decode
from metayoinker.loader import LoadBatch, LoadFailure
from metayoinker.exchange import Notification
from metayoinker.persist import SaveRequest
from metayoinker.ui.screens import SaveScreen


class MemorySink:
    def __init__(self) -> None:
        self.requests: list[SaveRequest] = []

    async def save(self, request: SaveRequest) -> Path | None:
        self.requests.append(request)
        return request.directory / request.suggested_name


def test_copy_paste_and_close(monkeypatch, make_record) -> None:
    monkeypatch.setattr(app_module, "save_config", lambda config: None)
    sink = MemorySink()
    source = make_record("source.dmi")
    target = make_record("target.png", description=None)

    async def scenario() -> None:
        app = MetaYoinkerApp(sink=sink)
        async with app.run_test() as pilot:
            app._apply_load_batch(LoadBatch(records=[source]))
            await pilot.pause()
            await pilot.press("c")
            entry = app.engine.clipboard.read()
            assert entry is not None
            assert entry.origin_name == "source.dmi"

            app._apply_load_batch(
                LoadBatch(
                    records=[target],
                    failures=[LoadFailure("broken.dmi", "broken.dmi", "Not a PNG file")],
                )
            )
            await pilot.pause()
            await pilot.press("p")
            await app.workers.wait_for_complete()
            await pilot.pause()
            assert len(sink.requests) == 1
            assert sink.requests[0].suggested_name == "target.dmi"
            assert decode(sink.requests[0].data).metadata == source.metadata
            assert target.metadata is None

            await pilot.press("w")
            await pilot.pause()
            await pilot.pause()
            assert list(app.viewers) == [source]

    asyncio.run(scenario())


def test_paste_with_empty_clipboard_does_not_save(monkeypatch, make_record) -> None:
    monkeypatch.setattr(app_module, "save_config", lambda config: None)
    sink = MemorySink()

    async def scenario() -> None:
        app = MetaYoinkerApp(sink=sink)
        async with app.run_test() as pilot:
            app._apply_load_batch(LoadBatch(records=[make_record("target.dmi")]))
            await pilot.pause()
            await pilot.press("p")
            await app.workers.wait_for_complete()
            assert sink.requests == []

    asyncio.run(scenario())


class RecordingApp(MetaYoinkerApp):
    def __init__(self, **kwargs) -> None:
        self.shown: list[str] = []
        super().__init__(**kwargs)

    def _show_notification(self, notification: Notification) -> None:
        self.shown.append(notification.text)
        super()._show_notification(notification)


async def _wait_for_save_screen(pilot, app) -> SaveScreen:
    for _ in range(20):
        if isinstance(app.screen, SaveScreen):
            return app.screen
        await pilot.pause()
    raise AssertionError("save dialog did not open")


def test_save_dialog_cancel_validate_and_overwrite(monkeypatch, make_record, tmp_path) -> None:
    saved: list[str | None] = []
    monkeypatch.setattr(app_module, "save_config", lambda config: saved.append(config.last_save_dir))
    source = make_record("source.dmi")
    target = make_record("target.png", description=None)
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    existing = out_dir / "target.dmi"
    existing.write_bytes(b"old")

    async def scenario() -> None:
        app = RecordingApp(config=AppConfig(last_save_dir=str(tmp_path)))
        async with app.run_test() as pilot:
            app._apply_load_batch(LoadBatch(records=[source]))
            await pilot.pause()
            await pilot.press("c")
            app._apply_load_batch(LoadBatch(records=[target]))
            await pilot.pause()
            assert app.shown == ["Copied metadata for source.dmi"]

            await pilot.press("p")
            screen = await _wait_for_save_screen(pilot, app)
            field = screen.query_one("#save_input", Input)
            assert field.value == str(tmp_path / "target.dmi")
            await pilot.press("escape")
            await app.workers.wait_for_complete()
            await pilot.pause()
            assert not isinstance(app.screen, SaveScreen)
            assert not (tmp_path / "target.dmi").exists()
            assert app.shown == ["Copied metadata for source.dmi"]

            await pilot.press("p")
            screen = await _wait_for_save_screen(pilot, app)
            field = screen.query_one("#save_input", Input)
            field.value = str(out_dir / "target.png")
            await pilot.pause()
            await pilot.press("enter")
            await pilot.pause()
            assert app.screen is screen
            assert not (out_dir / "target.png").exists()

            field.value = str(existing)
            await pilot.pause()
            await pilot.press("enter")
            await pilot.pause()
            assert app.screen is screen
            assert existing.read_bytes() == b"old"

            await pilot.press("enter")
            await app.workers.wait_for_complete()
            await pilot.pause()
            assert not isinstance(app.screen, SaveScreen)
            assert decode(existing.read_bytes()).metadata == source.metadata
            assert app.shown[-1] == "Downloaded target.dmi"
            assert saved[-1] == str(out_dir)

    asyncio.run(scenario())
