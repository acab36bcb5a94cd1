from __future__ import annotations

import json

import pytest

from latency_console.domain.hid import KeyboardReport, MouseReport
from latency_console.domain.messages import ProtocolError, parse_inbound, send_hid_report
from latency_console.domain.scenario import PRESET_SCENARIOS, Scenario, ScenarioError, parse_scenario


EXAMPLE = """
{
  "type": "measure",
  "duration_ms": 300,
  "before": [],
  "start": {"type": "keyboard", "pressed_keys": ["a"]},
  "followup": {"after_ms": 1, "hid_report": {"type": "keyboard"}},
  "after": [{"type": "keyboard", "pressed_keys": ["backspace"]}, {"type": "keyboard"}]
}
"""


def test_parse_editor_text() -> None:
    scenario = parse_scenario(EXAMPLE)

    assert scenario.duration_ms == 300
    assert scenario.start == KeyboardReport(pressed_keys=("a",))
    assert scenario.followup is not None
    assert scenario.followup.after_ms == 1
    assert len(scenario.after) == 2


def test_parsed_example_matches_preset() -> None:
    assert parse_scenario(EXAMPLE).serialize() == PRESET_SCENARIOS["type_a"].serialize()


def test_identity_ignores_omitted_defaults() -> None:
    terse = parse_scenario({"duration_ms": 300, "start": {"type": "mouse", "y": -80}, "after": [{"type": "mouse", "y": 80}]})
    assert terse.serialize() == PRESET_SCENARIOS["doom"].serialize()


def test_identity_differs_on_any_field() -> None:
    a = parse_scenario(EXAMPLE)
    data = json.loads(EXAMPLE)
    data["duration_ms"] = 301
    b = parse_scenario(data)
    assert a.serialize() != b.serialize()


def test_to_message_carries_measure_tag() -> None:
    msg = PRESET_SCENARIOS["draw"].to_message()

    assert msg["type"] == "measure"
    assert msg["start"] == {"type": "mouse", "buttons": ["left"], "x": 0, "y": 0, "wheel": 0, "pan": 0}
    assert msg["after"][1]["modifiers"] == ["l_meta"]
    assert msg["after"][1]["pressed_keys"] == ["z"]


def test_scenario_is_immutable() -> None:
    with pytest.raises(Exception):
        PRESET_SCENARIOS["doom"].duration_ms = 5  # type: ignore[misc]


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        "[1, 2, 3]",
        '{"type": "send_hid_report", "hid_report": {"type": "keyboard"}}',
        '{"duration_ms": 300, "start": {"type": "joystick"}}',
        '{"duration_ms": 300, "start": {"type": "mouse", "x": 500}}',
        '{"duration_ms": -1, "start": {"type": "keyboard"}}',
        '{"duration_ms": 300, "start": {"type": "keyboard", "pressed_keys": ["not_a_key"]}}',
        '{"duration_ms": 300, "start": {"type": "keyboard"}, "extra": true}',
        '{"start": {"type": "keyboard"}}',
    ],
)
def test_malformed_scenarios_are_rejected(raw: str) -> None:
    with pytest.raises(ScenarioError):
        parse_scenario(raw)


def test_too_many_keys() -> None:
    with pytest.raises(ScenarioError):
        parse_scenario({"duration_ms": 10, "start": {"type": "keyboard", "pressed_keys": list("abcdefg")}})


def test_scenario_error_is_value_error() -> None:
    assert issubclass(ScenarioError, ValueError)


def test_parse_passes_scenarios_through() -> None:
    s = PRESET_SCENARIOS["doom"]
    assert parse_scenario(s) is s


def test_send_hid_report_message() -> None:
    msg = send_hid_report(MouseReport(x=70))
    assert msg == {
        "type": "send_hid_report",
        "hid_report": {"type": "mouse", "buttons": [], "x": 70, "y": 0, "wheel": 0, "pan": 0},
    }


def test_parse_inbound_kinds() -> None:
    assert parse_inbound({"type": "background_light_level", "avg": 0.5}).avg == 0.5
    status = parse_inbound({"type": "status", "version": {"hardware": 1, "firmware": 7}, "max_light_level": 1000})
    assert status.version.firmware == 7


@pytest.mark.parametrize(
    "raw",
    [
        {"type": "nope"},
        {"type": "measurement", "light_levels": [[0, 1]], "max_light_level": 0, "change_us": None},
        {"type": "measurement", "light_levels": [[10, 1], [5, 1]], "max_light_level": 10, "change_us": None},
        {"avg": 0.3},
    ],
)
def test_parse_inbound_rejects(raw) -> None:
    with pytest.raises(ProtocolError):
        parse_inbound(raw)


def test_presets_are_valid_scenarios() -> None:
    for scenario in PRESET_SCENARIOS.values():
        assert isinstance(scenario, Scenario)
        assert parse_scenario(scenario.to_message()) == scenario
