from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.theme import Theme
from textual.widgets import Label, ListView, Static, TextArea
from textual_image.widget import Image as PreviewImage

from .clipboard import MetadataClipboard
from .config import (
    DEFAULT_PREVIEW_SCALE,
    AppConfig,
    load_config,
    save_config,
)
from .description import format_summary, parse_description
from .dmi import DMI_EXTENSION, DmiError
from .exchange import (
    ExchangeEngine,
    Notification,
    NotificationKind,
    PasteStatus,
    suggest_output_name,
)
from .loader import (
    LoadBatch,
    LoadError,
    LoadFailure,
    is_url,
    load_source,
    load_sources,
    split_sources,
)
from .logging_setup import configure_logging, parse_level
from .paths import config_path, log_path
from .persist import FileSink, PersistenceSink, default_save_dir
from .ui.screens import HelpScreen, OpenFilesScreen, ScreenSaveSink
from .ui.viewer_list import (
    ViewerListItem,
    format_clipboard,
    format_load_errors,
    format_metadata_status,
)
from .viewer import ViewerRecord, ViewerSet

logger = logging.getLogger(__name__)

APP_TITLE = "MetaYoinker"
CLEAR_TOAST_SECONDS = 2.0
TIP_TEXT = "Tip: drop .dmi files onto the terminal, or press o to open (? for help)"
HELP_TEXT = """Keyboard shortcuts
q  quit
o  open file(s) or URL(s)
c  copy metadata of the current file
p  paste clipboard metadata into the current file (saves a new .dmi)
x  clear the clipboard
w  close the current file
?  help

Loading
Drop files onto the terminal window: most terminals paste their paths,
which are loaded as a batch. Files that fail to load are listed in the
sidebar; the rest of the batch still loads.

Paste
Paste never changes the loaded file. It writes a copy with the clipboard
metadata to a location you choose. Press escape in the save dialog to
cancel.
"""

TOKYO_NIGHT_THEME = Theme(
    name="tokyo-night",
    primary="#7aa2f7",
    secondary="#7dcfff",
    accent="#bb9af7",
    warning="#e0af68",
    error="#f7768e",
    success="#9ece6a",
    foreground="#c0caf5",
    background="#1a1b26",
    surface="#1f2335",
    panel="#24283b",
    boost="#2f334d",
    variables={
        "block-cursor-background": "#7aa2f7",
        "block-cursor-foreground": "#1a1b26",
        "footer-key-foreground": "#7aa2f7",
        "input-selection-background": "#7aa2f7 30%",
        "button-color-foreground": "#1a1b26",
        "button-focus-text-style": "bold",
    },
)


class MetaYoinkerApp(App):
    BINDINGS = [
        ("q", "quit", "Quit"),
        ("o", "open_files", "Open"),
        ("c", "copy_metadata", "Copy"),
        ("p", "paste_metadata", "Paste"),
        ("x", "clear_clipboard", "Clear Clipboard"),
        ("w", "close_viewer", "Close"),
        ("?", "help", "Help"),
    ]

    CSS = """
    Screen {
        background: $background;
        color: $text;
    }

    #root {
        height: 100%;
    }

    #main {
        height: 1fr;
        padding: 1 1;
    }

    #sidebar, #viewer {
        padding: 1 1;
        background: $surface;
    }

    #sidebar {
        width: 32%;
        border: round $secondary;
    }

    #viewer {
        width: 68%;
        border: round $accent;
    }

    #app_title {
        height: 1;
        color: $primary;
        text-style: bold;
    }

    #files_label, #viewer_title {
        height: 1;
        color: $primary;
        text-style: bold;
    }

    #viewer_list {
        height: 1fr;
        background: transparent;
    }

    ListView > .viewer-item {
        padding: 0 1;
    }

    ListView > .viewer-item.-highlight {
        background: #3b4261;
        color: #e6e9ff;
        text-style: bold;
    }

    #load_status {
        height: auto;
        max-height: 8;
        color: $text-muted;
    }

    #clipboard_panel {
        height: 3;
        padding: 0 1;
        border: round $error;
    }

    #clipboard_panel.clipboard-full {
        border: round $success;
    }

    #preview_image {
        height: 1fr;
        width: auto;
        border: round $secondary;
    }

    #preview_message {
        height: 1fr;
        width: 100%;
        content-align: center middle;
        border: round $secondary;
        color: $text-muted;
    }

    #metadata_status {
        height: 1;
    }

    #metadata_summary {
        height: 1;
        color: $text-muted;
    }

    #metadata_text {
        height: 1fr;
        border: round $boost;
    }

    #tip_bar {
        height: 1;
        padding: 0 1;
        content-align: left middle;
        color: $text-muted;
        background: $panel;
        text-style: italic;
    }

    .hidden {
        display: none;
    }
    """

    def __init__(
        self,
        sources: list[str] | None = None,
        config: AppConfig | None = None,
        clipboard: MetadataClipboard | None = None,
        sink: PersistenceSink | None = None,
    ) -> None:
        super().__init__()
        self.register_theme(TOKYO_NIGHT_THEME)
        self.theme = TOKYO_NIGHT_THEME.name
        self.title = APP_TITLE
        self._config = config or AppConfig()
        self._initial_sources = list(sources or [])
        self._viewers = ViewerSet()
        self._load_errors: list[tuple[str, str]] = []
        self._current: ViewerRecord | None = None
        self._clipboard = clipboard or MetadataClipboard()
        self._engine = ExchangeEngine(
            self._clipboard,
            sink or ScreenSaveSink(self),
            notify=self._show_notification,
            save_dir=lambda: default_save_dir(self._config.last_save_dir),
        )
        self._viewer_list: ListView | None = None
        self._load_status: Static | None = None
        self._clipboard_panel: Static | None = None
        self._viewer_title: Label | None = None
        self._preview_image: PreviewImage | None = None
        self._preview_message: Static | None = None
        self._metadata_status: Label | None = None
        self._metadata_summary: Label | None = None
        self._metadata_text: TextArea | None = None

    @property
    def viewers(self) -> ViewerSet:
        return self._viewers

    @property
    def engine(self) -> ExchangeEngine:
        return self._engine

    def compose(self) -> ComposeResult:
        with Vertical(id="root"):
            with Horizontal(id="main"):
                with Vertical(id="sidebar"):
                    yield Label(f"{APP_TITLE} 😈", id="app_title")
                    yield Label("No Files Loaded", id="files_label")
                    yield ListView(id="viewer_list")
                    yield Static("", id="load_status")
                    yield Static(format_clipboard(None), id="clipboard_panel")
                with Vertical(id="viewer"):
                    yield Label("Drag & drop file(s) here", id="viewer_title")
                    yield PreviewImage(None, id="preview_image", classes="hidden")
                    yield Static("No file selected.", id="preview_message")
                    yield Label("", id="metadata_status")
                    yield Label("", id="metadata_summary")
                    yield TextArea("", id="metadata_text", read_only=True, soft_wrap=False)
            yield Static(TIP_TEXT, id="tip_bar")

    def on_mount(self) -> None:
        self._viewer_list = self.query_one("#viewer_list", ListView)
        self._load_status = self.query_one("#load_status", Static)
        self._clipboard_panel = self.query_one("#clipboard_panel", Static)
        self._viewer_title = self.query_one("#viewer_title", Label)
        self._preview_image = self.query_one("#preview_image", PreviewImage)
        self._preview_message = self.query_one("#preview_message", Static)
        self._metadata_status = self.query_one("#metadata_status", Label)
        self._metadata_summary = self.query_one("#metadata_summary", Label)
        self._metadata_text = self.query_one("#metadata_text", TextArea)
        self._refresh_clipboard_panel()
        self._show_record(None)
        if self._initial_sources:
            self.open_sources(self._initial_sources)

    def action_help(self) -> None:
        self.push_screen(HelpScreen(HELP_TEXT))

    def action_open_files(self) -> None:
        start = Path(self._config.last_open_dir) if self._config.last_open_dir else None
        self.push_screen(OpenFilesScreen(start), self._handle_open_files)

    def action_copy_metadata(self) -> None:
        record = self._current
        if record is None or not self._engine.can_copy(record):
            self.bell()
            return
        self._engine.copy(record)
        self._refresh_clipboard_panel()

    def action_paste_metadata(self) -> None:
        record = self._current
        if record is None or not self._engine.can_paste():
            self.bell()
            return
        self.run_worker(self._paste_into(record), group="paste")

    def action_clear_clipboard(self) -> None:
        if self._clipboard.is_empty:
            return
        self._clipboard.clear()
        logger.info("Cleared clipboard")
        self._show_notification(
            Notification(
                NotificationKind.SUCCESS,
                "Cleared clipboard",
                duration=CLEAR_TOAST_SECONDS,
            )
        )
        self._refresh_clipboard_panel()

    def action_close_viewer(self) -> None:
        record = self._current
        if record is None:
            return
        self._viewers.request_close(record.identity)
        self.call_after_refresh(self._sweep_viewers)

    def on_paste(self, event: events.Paste) -> None:
        sources = split_sources(event.text)
        if sources:
            event.stop()
            self.open_sources(sources)

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        if event.list_view is not self._viewer_list:
            return
        item = event.item
        if isinstance(item, ViewerListItem):
            self._show_record(item.record)

    def open_sources(self, sources: list[str]) -> None:
        if self._load_status is not None:
            lines = ["Loading files:"] + [f"  {source}" for source in sources]
            self._load_status.update(Text("\n".join(lines)))
        box = self._preview_box()
        scale = self._config.preview_scale or DEFAULT_PREVIEW_SCALE

        def worker() -> None:
            try:
                batch = load_sources(sources, preview_box=box, preview_max_scale=scale)
            except Exception as exc:
                logger.exception("Loading failed")
                batch = LoadBatch(
                    failures=[LoadFailure(name=source, source=source, message=str(exc)) for source in sources]
                )
            self.call_from_thread(self._apply_load_batch, batch)

        threading.Thread(target=worker, daemon=True).start()

    def _apply_load_batch(self, batch: LoadBatch) -> None:
        for record in batch.records:
            self._viewers.add(record)
            if record.source and not is_url(record.source):
                self._config.last_open_dir = str(Path(record.source).expanduser().resolve().parent)
        self._load_errors = [(failure.name, failure.message) for failure in batch.failures]
        if self._load_status is not None:
            self._load_status.update(format_load_errors(self._load_errors))
        if batch.records:
            self._persist_config()
            self._render_viewer_list(select=batch.records[-1])

    def _handle_open_files(self, value: str | None) -> None:
        if not value:
            return
        sources = split_sources(value)
        if sources:
            self.open_sources(sources)

    async def _paste_into(self, record: ViewerRecord) -> None:
        try:
            result = await self._engine.paste(record)
        except OSError as exc:
            logger.exception("Failed to save pasted file for %s", record.display_name)
            self.notify(f"Failed to save: {exc}", severity="error")
            return
        if result.status is PasteStatus.SAVED and result.path is not None:
            self._config.last_save_dir = str(result.path.parent)
            self._persist_config()

    def _sweep_viewers(self) -> None:
        removed = self._viewers.sweep()
        if not removed:
            return
        for record in removed:
            logger.info("Closed %s", record.display_name)
        index = 0
        if self._viewer_list is not None and self._viewer_list.index is not None:
            index = max(0, min(self._viewer_list.index, len(self._viewers) - 1))
        records = list(self._viewers)
        self._render_viewer_list(select=records[index] if records else None)

    def _render_viewer_list(self, select: ViewerRecord | None) -> None:
        list_view = self._viewer_list
        if list_view is None:
            return
        list_view.clear()
        records = list(self._viewers)
        for record in records:
            list_view.append(ViewerListItem(record))
        files_label = self.query_one("#files_label", Label)
        if not records:
            files_label.update("No Files Loaded")
            self._show_record(None)
            return
        files_label.update("Loaded files:" if len(records) > 1 else "Loaded file:")
        target = select if select in records else records[0]
        list_view.index = records.index(target)
        self._show_record(target)

    def _show_record(self, record: ViewerRecord | None) -> None:
        self._current = record
        if self._viewer_title is None or self._metadata_text is None:
            return
        if record is None:
            self._viewer_title.update("Drag & drop file(s) here")
            self._show_preview_message("No file selected.")
            if self._metadata_status is not None:
                self._metadata_status.update("")
            if self._metadata_summary is not None:
                self._metadata_summary.update("")
            self._metadata_text.load_text("")
            return
        self._viewer_title.update(record.display_name)
        self._show_preview(record)
        if self._metadata_status is not None:
            status = format_metadata_status(record)
            if not self._clipboard.is_empty:
                status.append("   p: ")
                status.append("Overwrite" if record.has_metadata else "Paste")
            self._metadata_status.update(status)
        text, summary = _describe_metadata(record)
        if self._metadata_summary is not None:
            self._metadata_summary.update(summary)
        self._metadata_text.load_text(text)

    def _show_preview(self, record: ViewerRecord) -> None:
        if self._preview_image is None or self._preview_message is None:
            return
        if record.bitmap is None:
            self._show_preview_message("No preview.")
            return
        try:
            self._preview_image.image = record.bitmap.image
        except (OSError, ValueError) as exc:
            logger.warning("Preview failed for %s: %s", record.display_name, exc)
            self._show_preview_message(f"Preview unavailable: {exc}")
            return
        self._preview_image.remove_class("hidden")
        self._preview_message.add_class("hidden")

    def _show_preview_message(self, message: str) -> None:
        if self._preview_image is None or self._preview_message is None:
            return
        self._preview_message.update(message)
        self._preview_message.remove_class("hidden")
        self._preview_image.add_class("hidden")

    def _refresh_clipboard_panel(self) -> None:
        panel = self._clipboard_panel
        if panel is None:
            return
        entry = self._clipboard.read()
        panel.update(format_clipboard(entry))
        panel.set_class(entry is not None, "clipboard-full")
        if self._current is not None:
            self._show_record(self._current)

    def _show_notification(self, notification: Notification) -> None:
        severity = "error" if notification.kind is NotificationKind.ERROR else "information"
        timeout = self._config.notification_seconds or notification.duration
        self.notify(notification.text, severity=severity, timeout=timeout)

    def _persist_config(self) -> None:
        error = save_config(self._config)
        if error:
            logger.warning(error)

    def _preview_box(self) -> tuple[int, int]:
        # Terminal cells are roughly 8x16 pixels.
        width, height = self.size
        return (max(64, width * 8), max(64, height * 16))


def _describe_metadata(record: ViewerRecord) -> tuple[str, str]:
    header = f"# {record.display_name}"
    chunk = record.metadata
    if chunk is None:
        return f"{header}\nNo metadata", ""
    try:
        text = chunk.text()
    except DmiError as exc:
        return f"{header}\nError: {exc}", ""
    return f"{header}\n{text}", format_summary(parse_description(text))


def _cli_help_text() -> str:
    return (
        "usage: metayoinker [FILE ...]\n"
        "       metayoinker --show FILE\n"
        "       metayoinker --copy-from SRC --paste-into DST [--output OUT]\n"
        "\n"
        "Copy the DMI metadata (zTXt Description chunk) between sprite sheets.\n"
        "FILE may be a path or an http(s) URL.\n"
        "\n"
        f"Config file: {config_path()}\n"
        f"Log file: {log_path()}\n"
    )


def _print_notification(notification: Notification) -> None:
    print(notification.text)


def _run_show(source: str) -> int:
    try:
        record = load_source(source)
    except LoadError as exc:
        print(f"Error loading {source}: {exc}", file=sys.stderr)
        return 1
    text, summary = _describe_metadata(record)
    print(text)
    if summary:
        print(f"\n{summary}")
    return 0


def _run_exchange(copy_from: str, paste_into: str, output: str | None) -> int:
    batch = load_sources([copy_from, paste_into])
    for failure in batch.failures:
        print(f"Error loading {failure.name}: {failure.message}", file=sys.stderr)
    if batch.failures:
        return 1
    source, target = batch.records
    clipboard = MetadataClipboard()
    if output:
        target_path = Path(output).expanduser()
    else:
        if is_url(paste_into):
            directory = Path.cwd()
        else:
            directory = Path(paste_into).expanduser().resolve().parent
        target_path = directory / suggest_output_name(target.display_name, DMI_EXTENSION)
        if target_path.exists():
            print(f"Refusing to overwrite {target_path}; pass --output", file=sys.stderr)
            return 1
    engine = ExchangeEngine(clipboard, FileSink(target_path), notify=_print_notification)
    if not engine.copy(source):
        print(f"{source.display_name} has no metadata to copy", file=sys.stderr)
        return 1
    try:
        result = engine.paste_blocking(target)
    except OSError as exc:
        print(f"Failed to save: {exc}", file=sys.stderr)
        return 1
    return 0 if result.status is PasteStatus.SAVED else 1


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="metayoinker", add_help=False)
    parser.add_argument("files", nargs="*", help="Sprite sheets to open")
    parser.add_argument("-h", "-help", "--help", action="store_true", dest="show_help")
    parser.add_argument("--show", metavar="FILE", help="Print the metadata of FILE and exit")
    parser.add_argument("--copy-from", metavar="SRC", help="Copy metadata from SRC")
    parser.add_argument("--paste-into", metavar="DST", help="Paste metadata into a copy of DST")
    parser.add_argument("--output", metavar="OUT", help="Output file or directory for --paste-into")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)")
    args = parser.parse_args(argv)
    if args.show_help:
        print(_cli_help_text())
        return

    config, config_error = load_config()
    level = parse_level(args.log_level or config.log_level)
    interactive = not (args.show or args.copy_from or args.paste_into)
    configure_logging(
        level,
        log_file_path=log_path(),
        stream=None if interactive else sys.stderr,
    )
    if config_error:
        logger.warning(config_error)

    if args.show:
        sys.exit(_run_show(args.show))
    if args.copy_from or args.paste_into:
        if not (args.copy_from and args.paste_into):
            parser.error("--copy-from and --paste-into must be used together")
        sys.exit(_run_exchange(args.copy_from, args.paste_into, args.output))
    if args.output:
        parser.error("--output requires --paste-into")

    app = MetaYoinkerApp(sources=args.files, config=config)
    app.run()
