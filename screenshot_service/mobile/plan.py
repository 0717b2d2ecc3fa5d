from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..config import load_json_file, require_key
from .driver import Locator, parse_locator
from .sequencer import (
    DEFAULT_BOTTOM_OFFSET,
    DEFAULT_LANDING_NAME,
    DEFAULT_TAB_COUNT,
    SETTLE_MODES,
    Destination,
    SequencerError,
    SettlePolicy,
    validate_destinations,
)


class CapturePlanError(RuntimeError):
    pass


@dataclass(frozen=True)
class CapturePlan:
    destinations: list[Destination]
    tab_count: int = DEFAULT_TAB_COUNT
    bottom_offset: float = DEFAULT_BOTTOM_OFFSET
    landing_name: str = DEFAULT_LANDING_NAME
    launch_name: Optional[str] = None
    launch_settle_s: float = 0.0
    settle: SettlePolicy = field(default_factory=SettlePolicy)
    strict_verification: bool = False
    debug_accessibility: bool = False
    app_id: Optional[str] = None


def _as_non_empty_str(value: Any, *, field: str, context: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise CapturePlanError(f"{context}: '{field}' must be a non-empty string")
    return value.strip()


def _as_int(value: Any, *, field: str, context: str, minimum: int) -> int:
    # bool is an int subclass; numeric strings are not coerced.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CapturePlanError(f"{context}: '{field}' must be an integer")
    if isinstance(value, float) and not value.is_integer():
        raise CapturePlanError(f"{context}: '{field}' must be a whole number, got {value}")
    parsed = int(value)
    if parsed < minimum:
        raise CapturePlanError(f"{context}: '{field}' must be >= {minimum}")
    return parsed


def _as_bool(value: Any, *, field: str, context: str) -> bool:
    if not isinstance(value, bool):
        raise CapturePlanError(f"{context}: '{field}' must be true or false")
    return value


def _as_non_negative_float(value: Any, *, field: str, context: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CapturePlanError(f"{context}: '{field}' must be a number")
    parsed = float(value)
    if parsed < 0:
        raise CapturePlanError(f"{context}: '{field}' must be >= 0")
    return parsed


def _parse_optional_locator(raw: Any, *, context: str) -> Optional[Locator]:
    if raw is None:
        return None
    try:
        return parse_locator(raw, context=context)
    except ValueError as e:
        raise CapturePlanError(str(e)) from e


def _parse_settle(raw: Any, *, context: str) -> SettlePolicy:
    if raw is None:
        return SettlePolicy()
    if not isinstance(raw, dict):
        raise CapturePlanError(f"{context}: 'settle' must be an object")
    defaults = SettlePolicy()
    mode = _as_non_empty_str(raw.get("mode", defaults.mode), field="mode", context=f"{context}: settle").lower()
    if mode not in SETTLE_MODES:
        raise CapturePlanError(f"{context}: settle mode must be one of {', '.join(SETTLE_MODES)}")
    poll_s = _as_non_negative_float(raw.get("poll_s", defaults.poll_s), field="poll_s", context=f"{context}: settle")
    if mode == "stable_frame" and poll_s <= 0:
        raise CapturePlanError(f"{context}: settle 'poll_s' must be > 0 for stable_frame")
    return SettlePolicy(
        mode=mode,
        settle_s=_as_non_negative_float(
            raw.get("settle_s", defaults.settle_s), field="settle_s", context=f"{context}: settle"
        ),
        post_capture_s=_as_non_negative_float(
            raw.get("post_capture_s", defaults.post_capture_s), field="post_capture_s", context=f"{context}: settle"
        ),
        poll_s=poll_s,
    )


def parse_capture_plan(config: dict[str, Any], *, context: str) -> CapturePlan:
    """
    Build a CapturePlan from its JSON form:

      {
        "tab_count": 3,
        "bottom_offset": 90,
        "launch_name": "01_Launch",
        "landing_name": "02_Learn",
        "launch_settle_s": 3,
        "settle": {"mode": "fixed", "settle_s": 3, "post_capture_s": 1},
        "destinations": [
          {"index": 1, "screenshot_name": "03_Quiz"},
          {"index": 2, "screenshot_name": "04_Settings", "locator": "Settings", "marker": "settings_title"}
        ]
      }
    """
    tab_count = _as_int(config.get("tab_count", DEFAULT_TAB_COUNT), field="tab_count", context=context, minimum=1)
    destinations_raw = require_key(config, "destinations", context=context)
    if not isinstance(destinations_raw, list):
        raise CapturePlanError(f"{context}: 'destinations' must be a list")

    destinations: list[Destination] = []
    for idx, item in enumerate(destinations_raw, 1):
        item_context = f"{context}: destinations[{idx}]"
        if not isinstance(item, dict):
            raise CapturePlanError(f"{item_context} must be an object")
        destinations.append(
            Destination(
                index=_as_int(require_key(item, "index", context=item_context), field="index", context=item_context, minimum=0),
                screenshot_name=_as_non_empty_str(
                    require_key(item, "screenshot_name", context=item_context),
                    field="screenshot_name",
                    context=item_context,
                ),
                locator=_parse_optional_locator(item.get("locator"), context=f"{item_context}: locator"),
                marker=_parse_optional_locator(item.get("marker"), context=f"{item_context}: marker"),
            )
        )

    landing_name = _as_non_empty_str(
        config.get("landing_name", DEFAULT_LANDING_NAME), field="landing_name", context=context
    )
    launch_name_raw = config.get("launch_name")
    launch_name = (
        _as_non_empty_str(launch_name_raw, field="launch_name", context=context)
        if launch_name_raw is not None
        else None
    )
    try:
        validate_destinations(
            destinations,
            tab_count=tab_count,
            landing_name=landing_name,
            launch_name=launch_name,
        )
    except SequencerError as e:
        raise CapturePlanError(f"{context}: {e}") from e

    app_id = config.get("app_id")
    return CapturePlan(
        destinations=destinations,
        tab_count=tab_count,
        bottom_offset=_as_non_negative_float(
            config.get("bottom_offset", DEFAULT_BOTTOM_OFFSET), field="bottom_offset", context=context
        ),
        landing_name=landing_name,
        launch_name=launch_name,
        launch_settle_s=_as_non_negative_float(
            config.get("launch_settle_s", 0.0), field="launch_settle_s", context=context
        ),
        settle=_parse_settle(config.get("settle"), context=context),
        strict_verification=_as_bool(
            config.get("strict_verification", False), field="strict_verification", context=context
        ),
        debug_accessibility=_as_bool(
            config.get("debug_accessibility", False), field="debug_accessibility", context=context
        ),
        app_id=_as_non_empty_str(app_id, field="app_id", context=context) if app_id is not None else None,
    )


def load_capture_plan(path: str | Path) -> CapturePlan:
    return parse_capture_plan(load_json_file(path), context=str(path))
