from __future__ import annotations

from metayoinker.description import IconState, format_summary, parse_description

from conftest import DESCRIPTION


def test_parse_description() -> None:
    description = parse_description(DESCRIPTION)
    assert description.version == "4.0"
    assert description.width == 32
    assert description.height == 32
    assert description.states == [
        IconState(name="idle", dirs=4, frames=1),
        IconState(name="walk", dirs=4, frames=2),
    ]
    assert description.warnings == []


def test_state_properties_do_not_leak_into_header() -> None:
    text = '# BEGIN DMI\nversion = 4.0\nstate = "a"\n\twidth = 64\n# END DMI\n'
    description = parse_description(text)
    assert description.width is None
    assert description.states == [IconState(name="a")]


def test_parse_description_reports_problems() -> None:
    description = parse_description("version = 4.0\nnonsense line\n")
    assert description.version == "4.0"
    assert len(description.warnings) == 2


def test_format_summary() -> None:
    assert format_summary(parse_description(DESCRIPTION)) == "DMI v4.0, 32x32, 2 states, 12 icons"
    single = parse_description('# BEGIN DMI\nstate = "x"\n# END DMI\n')
    assert format_summary(single) == "1 state, 1 icon"


def test_format_summary_counts_warnings() -> None:
    broken = parse_description("version = 4.0\nnonsense line\n")
    assert format_summary(broken) == "DMI v4.0, 0 states, 0 icons, 2 warnings"
