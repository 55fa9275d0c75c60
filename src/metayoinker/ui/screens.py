from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from textual import events
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static

from ..persist import SaveRequest, has_extension, write_bytes

if TYPE_CHECKING:
    from textual.app import App


class HelpScreen(ModalScreen[None]):
    BINDINGS = [("escape", "close", "Close"), ("?", "close", "Close")]

    CSS = """
    HelpScreen {
        align: center middle;
        background: $surface 80%;
    }

    #help_dialog {
        width: 70%;
        max-width: 80;
        height: 80%;
        max-height: 90%;
        padding: 1 2;
        border: heavy $accent;
        background: $panel;
    }

    #help_scroll {
        height: 1fr;
    }

    #help_text {
        width: 100%;
    }
    """

    def __init__(self, help_text: str) -> None:
        super().__init__()
        self._help_text = help_text

    def compose(self) -> ComposeResult:
        with Vertical(id="help_dialog"):
            with VerticalScroll(id="help_scroll"):
                yield Static(self._help_text, id="help_text", markup=False)
            yield Button("Close", id="help_close")

    def on_mount(self) -> None:
        self.query_one("#help_scroll", VerticalScroll).focus()

    def action_close(self) -> None:
        self.dismiss(None)

    def on_key(self, event: events.Key) -> None:
        key = event.key
        character = event.character or ""
        if key == "escape" or key == "?" or character == "?":
            self.action_close()
            event.stop()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "help_close":
            self.dismiss(None)


class OpenFilesScreen(ModalScreen[str | None]):
    BINDINGS = [("escape", "cancel", "Cancel")]

    CSS = """
    OpenFilesScreen {
        align: center middle;
        background: $surface 80%;
    }

    #open_dialog {
        width: 70%;
        max-width: 100;
        padding: 1 2;
        border: heavy $accent;
        background: $panel;
    }

    #open_hint {
        color: $text-muted;
        height: 1;
    }

    #open_error {
        color: $error;
        height: 1;
    }
    """

    def __init__(self, start_dir: Path | None) -> None:
        super().__init__()
        self._start_dir = start_dir

    def compose(self) -> ComposeResult:
        prefix = f"{self._start_dir}/" if self._start_dir else ""
        with Vertical(id="open_dialog"):
            yield Label("Open sprite sheets")
            yield Input(value=prefix, placeholder="Paths or URLs of .dmi files", id="open_input")
            yield Label("Separate entries with spaces; quote paths with spaces.", id="open_hint")
            yield Label("", id="open_error")
            with Horizontal():
                yield Button("Open", id="open_ok")
                yield Button("Cancel", id="open_cancel")

    def action_cancel(self) -> None:
        self.dismiss(None)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "open_cancel":
            self.dismiss(None)
        elif event.button.id == "open_ok":
            self._submit()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "open_input":
            self._submit()

    def _submit(self) -> None:
        value = self.query_one("#open_input", Input).value.strip()
        if not value or value.endswith(("/", "\\")):
            self.query_one("#open_error", Label).update("Please enter at least one file.")
            return
        self.dismiss(value)


class SaveScreen(ModalScreen[Path | None]):
    """Save-location chooser restricted to one extension.

    Dismisses with the chosen path, or ``None`` when the user backs out.
    An existing file needs a second confirmation before it is overwritten.
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    CSS = """
    SaveScreen {
        align: center middle;
        background: $surface 80%;
    }

    #save_dialog {
        width: 70%;
        max-width: 100;
        padding: 1 2;
        border: heavy $accent;
        background: $panel;
    }

    #save_error {
        color: $error;
        height: 1;
    }
    """

    def __init__(self, request: SaveRequest) -> None:
        super().__init__()
        self._request = request
        self._confirm_overwrite: Path | None = None

    def compose(self) -> ComposeResult:
        default = self._request.directory / self._request.suggested_name
        with Vertical(id="save_dialog"):
            yield Label(f"Save as (*.{self._request.extension})")
            yield Input(value=str(default), id="save_input")
            yield Label("", id="save_error")
            with Horizontal():
                yield Button("Save", id="save_ok")
                yield Button("Cancel", id="save_cancel")

    def action_cancel(self) -> None:
        self.dismiss(None)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save_cancel":
            self.dismiss(None)
        elif event.button.id == "save_ok":
            self._submit()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "save_input":
            self._submit()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "save_input":
            self._confirm_overwrite = None

    def _submit(self) -> None:
        error_label = self.query_one("#save_error", Label)
        value = self.query_one("#save_input", Input).value.strip()
        if not value:
            error_label.update("Please enter a file path.")
            return
        path = Path(value).expanduser()
        if not has_extension(path, self._request.extension):
            error_label.update(f"File name must end with .{self._request.extension}")
            return
        if path.is_dir():
            error_label.update("That path is a directory.")
            return
        if path.exists() and self._confirm_overwrite != path:
            self._confirm_overwrite = path
            error_label.update("File exists. Press Save again to overwrite.")
            return
        self.dismiss(path)


class ScreenSaveSink:
    """Persistence sink that asks for the destination with :class:`SaveScreen`.

    ``save`` waits on a modal screen, so it must run inside a worker.
    """

    def __init__(self, app: App) -> None:
        self._app = app

    async def save(self, request: SaveRequest) -> Path | None:
        path = await self._app.push_screen_wait(SaveScreen(request))
        if path is None:
            return None
        return await write_bytes(path, request.data)
