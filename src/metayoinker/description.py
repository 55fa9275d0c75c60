from __future__ import annotations

from dataclasses import dataclass, field

BEGIN_MARKER = "# BEGIN DMI"
END_MARKER = "# END DMI"


@dataclass(frozen=True)
class IconState:
    name: str
    dirs: int = 1
    frames: int = 1


@dataclass(frozen=True)
class DmiDescription:
    version: str | None = None
    width: int | None = None
    height: int | None = None
    states: list[IconState] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def parse_description(text: str) -> DmiDescription:
    version: str | None = None
    width: int | None = None
    height: int | None = None
    states: list[IconState] = []
    warnings: list[str] = []
    current: dict[str, object] | None = None
    seen_begin = False

    for line_no, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue
        if line == BEGIN_MARKER:
            seen_begin = True
            continue
        if line == END_MARKER:
            break
        if line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            warnings.append(f"Line {line_no}: expected key = value")
            continue
        key = key.strip()
        value = value.strip()
        if key == "state":
            if current is not None:
                states.append(_build_state(current))
            current = {"name": _unquote(value)}
        elif current is not None:
            current[key] = value
        elif key == "version":
            version = value
        elif key == "width":
            width = _as_int(value)
        elif key == "height":
            height = _as_int(value)

    if current is not None:
        states.append(_build_state(current))
    if not seen_begin:
        warnings.append(f"Missing '{BEGIN_MARKER}' header")
    return DmiDescription(
        version=version,
        width=width,
        height=height,
        states=states,
        warnings=warnings,
    )


def format_summary(description: DmiDescription) -> str:
    parts = []
    if description.version:
        parts.append(f"DMI v{description.version}")
    if description.width is not None and description.height is not None:
        parts.append(f"{description.width}x{description.height}")
    parts.append(_plural(len(description.states), "state"))
    parts.append(_plural(sum(state.dirs * state.frames for state in description.states), "icon"))
    if description.warnings:
        parts.append(_plural(len(description.warnings), "warning"))
    return ", ".join(parts)


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def _build_state(values: dict[str, object]) -> IconState:
    return IconState(
        name=str(values.get("name", "")),
        dirs=_as_int(values.get("dirs")) or 1,
        frames=_as_int(values.get("frames")) or 1,
    )


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def _as_int(value: object) -> int | None:
    if not isinstance(value, str):
        return None
    try:
        return int(value)
    except ValueError:
        return None
