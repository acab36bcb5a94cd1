from __future__ import annotations

from typing import Annotated, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


MouseButton = Literal["left", "right", "middle"]

KeyboardModifier = Literal[
    "l_ctrl", "l_shift", "l_alt", "l_meta",
    "r_ctrl", "r_shift", "r_alt", "r_meta",
]

# USB HID keyboard usages, named the way the device bridge accepts them
KEYCODES = frozenset(
    [chr(c) for c in range(ord("a"), ord("z") + 1)]
    + [
        "one_exclamation", "two_at", "three_hash", "four_dollar", "five_percent",
        "six_caret", "seven_ampersand", "eight_asterisk", "nine_open_parens",
        "zero_close_parens", "enter", "escape", "backspace", "tab", "spacebar",
        "dash_underscore", "equal_plus", "open_bracket_brace", "close_bracket_brace",
        "backslash_bar", "non_us_hash", "semi_colon", "single_double_quote",
        "backtick_tilde", "comma_less", "period_greater", "slash_question",
        "caps_lock", "print_screen", "scroll_lock", "pause", "insert", "home",
        "page_up", "delete", "end", "page_down", "right", "left", "down", "up",
        "mute", "volume_up", "volume_down",
    ]
    + [f"f{n}" for n in range(1, 13)]
)

# the keyboard report carries at most six keycodes
MAX_PRESSED_KEYS = 6

Int8 = Annotated[int, Field(ge=-128, le=127)]


class MouseReport(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["mouse"] = "mouse"
    buttons: Tuple[MouseButton, ...] = ()
    x: Int8 = 0
    y: Int8 = 0
    wheel: Int8 = 0
    pan: Int8 = 0


class KeyboardReport(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["keyboard"] = "keyboard"
    modifiers: Tuple[KeyboardModifier, ...] = ()
    pressed_keys: Tuple[str, ...] = ()

    @field_validator("pressed_keys")
    @classmethod
    def _known_keys(cls, keys: Tuple[str, ...]) -> Tuple[str, ...]:
        if len(keys) > MAX_PRESSED_KEYS:
            raise ValueError(f"At most {MAX_PRESSED_KEYS} keys can be pressed at once")
        unknown = [k for k in keys if k not in KEYCODES]
        if unknown:
            raise ValueError(f"Unknown keycodes: {', '.join(unknown)}")
        return keys


InputReport = Annotated[Union[MouseReport, KeyboardReport], Field(discriminator="type")]
