from __future__ import annotations

from rich.text import Text
from textual.widgets import Label, ListItem

from ..clipboard import ClipboardEntry
from ..viewer import ViewerRecord

_NAME_STYLE = "#c0caf5"
_META_STYLE = "#9ece6a"
_NO_META_STYLE = "#f7768e"
_ERROR_STYLE = "#f7768e"

_IMAGE_ICON = ""


class ViewerListItem(ListItem):
    def __init__(self, record: ViewerRecord) -> None:
        self.record = record
        super().__init__(Label(format_viewer_label(record)), classes="viewer-item")


def format_viewer_label(record: ViewerRecord) -> Text:
    label = Text()
    label.append(_IMAGE_ICON, style=_META_STYLE if record.has_metadata else _NO_META_STYLE)
    label.append(" ")
    label.append(record.display_name, style=_NAME_STYLE)
    return label


def format_metadata_status(record: ViewerRecord) -> Text:
    status = Text("Metadata: ")
    if record.has_metadata:
        status.append("Yes", style=f"bold {_META_STYLE}")
    else:
        status.append("None", style=f"bold {_NO_META_STYLE}")
    return status


def format_clipboard(entry: ClipboardEntry | None) -> Text:
    text = Text("Clipboard: ", style="bold")
    if entry is None:
        text.append("None", style=_NO_META_STYLE)
    else:
        text.append(entry.origin_name, style=_META_STYLE)
    return text


def format_load_errors(errors: list[tuple[str, str]]) -> Text:
    text = Text()
    for index, (name, message) in enumerate(errors):
        if index:
            text.append("\n")
        text.append(f"Error loading {name}: {message}", style=_ERROR_STYLE)
    return text
