from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .hid import InputReport, KeyboardReport, MouseReport


class ScenarioError(ValueError):
    """Raised when scenario input can't be turned into a dispatchable Scenario."""


class Followup(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    after_ms: int = Field(ge=0)
    hid_report: InputReport


class Scenario(BaseModel):
    """A scripted input sequence the device replays while recording light levels.

    ``before`` reports are sent ahead of the measurement, ``start`` opens the
    recording window of ``duration_ms``, ``followup`` fires ``after_ms`` later
    (typically a key release) and ``after`` cleans up once recording ends.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    duration_ms: int = Field(ge=0)
    before: Tuple[InputReport, ...] = ()
    start: InputReport
    followup: Optional[Followup] = None
    after: Tuple[InputReport, ...] = ()

    def serialize(self) -> str:
        """Canonical JSON form; two scenarios are the same iff these match."""
        return self.model_dump_json()

    def to_message(self) -> Dict[str, Any]:
        return {"type": "measure", **self.model_dump(mode="json")}


def parse_scenario(raw: Union[str, Mapping[str, Any], Scenario]) -> Scenario:
    if isinstance(raw, Scenario):
        return raw

    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ScenarioError(f"Scenario is not valid JSON: {e}") from e
    else:
        data = raw

    if not isinstance(data, Mapping):
        raise ScenarioError("Scenario must be a JSON object")

    data = dict(data)
    msg_type = data.pop("type", "measure")
    if msg_type != "measure":
        raise ScenarioError(f"Scenario can only be of type 'measure', got {msg_type!r}")

    try:
        return Scenario.model_validate(data)
    except ValidationError as e:
        raise ScenarioError(f"Invalid scenario: {e}") from e


PRESET_SCENARIOS: Dict[str, Scenario] = {
    # type a letter into a text field, then erase it
    "type_a": Scenario(
        duration_ms=300,
        start=KeyboardReport(pressed_keys=("a",)),
        followup=Followup(after_ms=1, hid_report=KeyboardReport()),
        after=(KeyboardReport(pressed_keys=("backspace",)), KeyboardReport()),
    ),
    # click in a drawing app, then undo
    "draw": Scenario(
        duration_ms=150,
        start=MouseReport(buttons=("left",)),
        followup=Followup(after_ms=1, hid_report=MouseReport()),
        after=(
            KeyboardReport(modifiers=("l_meta",)),
            KeyboardReport(modifiers=("l_meta",), pressed_keys=("z",)),
            KeyboardReport(),
        ),
    ),
    # look up in a shooter, then back down
    "doom": Scenario(
        duration_ms=300,
        start=MouseReport(y=-80),
        after=(MouseReport(y=80),),
    ),
}
