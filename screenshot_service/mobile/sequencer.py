from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from .accessibility import format_accessibility_summary, summarize_accessibility
from .artifacts import safe_stem
from .driver import Locator

DEFAULT_TAB_COUNT = 3
DEFAULT_BOTTOM_OFFSET = 90.0
DEFAULT_LANDING_NAME = "01_Landing"

SETTLE_MODES = ("fixed", "stable_frame")


class SequencerError(RuntimeError):
    pass


@dataclass(frozen=True)
class Destination:
    index: int
    screenshot_name: str
    locator: Optional[Locator] = None
    marker: Optional[Locator] = None


@dataclass(frozen=True)
class ScreenGeometry:
    width: float
    height: float


@dataclass(frozen=True)
class TapPoint:
    x: float
    y: float


@dataclass(frozen=True)
class ElementProbe:
    present: bool
    label: Optional[str] = None


@dataclass(frozen=True)
class SettlePolicy:
    mode: str = "fixed"
    settle_s: float = 3.0
    post_capture_s: float = 1.0
    poll_s: float = 0.5


@dataclass(frozen=True)
class CapturedArtifact:
    name: str
    path: Path
    order: int
    destination_index: Optional[int]
    navigation: str
    verified: Optional[bool] = None


def compute_tap_point(
    *,
    index: int,
    tab_count: int,
    geometry: ScreenGeometry,
    bottom_offset: float = DEFAULT_BOTTOM_OFFSET,
) -> TapPoint:
    """
    Horizontal centre of tab `index` in a bar split into `tab_count` equal
    regions, `bottom_offset` points above the bottom edge.
    """
    if tab_count <= 0:
        raise SequencerError(f"tab_count must be > 0, got {tab_count}")
    if index < 0 or index >= tab_count:
        raise SequencerError(f"tab index {index} out of range for {tab_count} tab(s)")
    if geometry.width <= 0 or geometry.height <= 0:
        raise SequencerError(f"invalid screen geometry {geometry.width} x {geometry.height}")

    tab_width = geometry.width / tab_count
    x = index * tab_width + tab_width / 2
    y = geometry.height - bottom_offset
    if not (0 <= x <= geometry.width and 0 <= y <= geometry.height):
        raise SequencerError(
            f"tap point ({x}, {y}) falls outside the {geometry.width} x {geometry.height} frame "
            f"(bottom_offset={bottom_offset})"
        )
    return TapPoint(x=x, y=y)


def probe_element(driver: Any, locator: Locator) -> ElementProbe:
    """
    Optional-capability lookup: absence is a normal answer, not an error.
    """
    if not driver.element_exists(locator):
        return ElementProbe(present=False)
    return ElementProbe(present=True, label=driver.element_label(locator))


def validate_destinations(
    destinations: Sequence[Destination],
    *,
    tab_count: int,
    landing_name: str = DEFAULT_LANDING_NAME,
    launch_name: Optional[str] = None,
) -> None:
    """
    Names are compared by the file stem they are written under, so "Tab 1"
    and "Tab_1" collide just like identical names do.
    """
    seen_indices: set[int] = set()
    seen_stems: dict[str, str] = {}
    for name in (launch_name, landing_name):
        if name is None:
            continue
        stem = safe_stem(name)
        if stem in seen_stems:
            raise SequencerError(f"screenshot name {name!r} collides with {seen_stems[stem]!r} (file {stem!r})")
        seen_stems[stem] = name
    for d in destinations:
        if d.index < 0 or d.index >= tab_count:
            raise SequencerError(f"destination {d.screenshot_name!r}: index {d.index} not in [0, {tab_count})")
        if d.index in seen_indices:
            raise SequencerError(f"destination {d.screenshot_name!r}: duplicate index {d.index}")
        if not d.screenshot_name.strip():
            raise SequencerError(f"destination at index {d.index}: screenshot_name must be non-empty")
        stem = safe_stem(d.screenshot_name)
        if stem in seen_stems:
            raise SequencerError(
                f"screenshot name {d.screenshot_name!r} collides with {seen_stems[stem]!r} (file {stem!r})"
            )
        seen_indices.add(d.index)
        seen_stems[stem] = d.screenshot_name


def _digest(png_bytes: bytes) -> str:
    return hashlib.sha256(png_bytes).hexdigest()


class ScreenshotSequencer:
    """
    Walk a fixed list of bottom-navigation destinations and capture one
    screenshot per destination, plus one for the landing screen (and,
    when `launch_name` is set, one of the loading screen before that).

    `driver` needs: frame(), tap(x, y), element_exists(locator),
    element_label(locator), click(locator), screenshot_png(), page_source().
    `store(name, png_bytes) -> Path` persists a screenshot.

    Navigation is not verified unless a destination carries a `marker`;
    an unverified tap still produces an artifact.
    """

    def __init__(
        self,
        driver: Any,
        store: Callable[[str, bytes], Path],
        *,
        tab_count: int = DEFAULT_TAB_COUNT,
        bottom_offset: float = DEFAULT_BOTTOM_OFFSET,
        settle: Optional[SettlePolicy] = None,
        landing_name: str = DEFAULT_LANDING_NAME,
        launch_name: Optional[str] = None,
        launch_settle_s: float = 0.0,
        strict_verification: bool = False,
        debug_accessibility: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if tab_count <= 0:
            raise SequencerError(f"tab_count must be > 0, got {tab_count}")
        self.driver = driver
        self.store = store
        self.tab_count = tab_count
        self.bottom_offset = bottom_offset
        self.settle = settle or SettlePolicy()
        if self.settle.mode not in SETTLE_MODES:
            raise SequencerError(f"settle mode must be one of {SETTLE_MODES}, got {self.settle.mode!r}")
        self.landing_name = landing_name
        self.launch_name = launch_name
        self.launch_settle_s = launch_settle_s
        self.strict_verification = strict_verification
        self.debug_accessibility = debug_accessibility
        self._sleep = sleep
        self._clock = clock

    def run(self, destinations: Sequence[Destination]) -> list[CapturedArtifact]:
        validate_destinations(
            destinations,
            tab_count=self.tab_count,
            landing_name=self.landing_name,
            launch_name=self.launch_name,
        )

        artifacts: list[CapturedArtifact] = []
        if self.launch_name is not None:
            # Loading screen, taken before the app has had time to render its first tab.
            artifacts.append(self._capture(self.launch_name, order=0, destination_index=None, navigation="launch"))

        if self.launch_settle_s > 0:
            self._sleep(self.launch_settle_s)
        if self.debug_accessibility:
            print(format_accessibility_summary(summarize_accessibility(self.driver.page_source())))

        landing_order = len(artifacts)
        artifacts.append(
            self._capture(self.landing_name, order=landing_order, destination_index=None, navigation="landing")
        )

        for step, destination in enumerate(destinations, 1):
            order = landing_order + step
            print(f"\n[{step}/{len(destinations)}] tab {destination.index} -> {destination.screenshot_name}")
            navigation = self.navigate(destination)
            self.wait_until_settled()
            verified = self._verify(destination)
            artifacts.append(
                self._capture(
                    destination.screenshot_name,
                    order=order,
                    destination_index=destination.index,
                    navigation=navigation,
                    verified=verified,
                )
            )
            if self.settle.post_capture_s > 0:
                self._sleep(self.settle.post_capture_s)

        return artifacts

    def navigate(self, destination: Destination) -> str:
        """
        Click the destination's element when it exists, otherwise tap the
        computed tab centre. Returns the mechanism used.
        """
        if destination.locator is not None:
            if self.driver.click(destination.locator):
                print(f"  click: {destination.locator}")
                return "element"
            print(f"  element {destination.locator} not present, falling back to coordinates")

        width, height = self.driver.frame()
        geometry = ScreenGeometry(width=float(width), height=float(height))
        point = compute_tap_point(
            index=destination.index,
            tab_count=self.tab_count,
            geometry=geometry,
            bottom_offset=self.bottom_offset,
        )
        print(f"  screen: {geometry.width} x {geometry.height}")
        print(f"  tap: ({point.x}, {point.y})")
        self.driver.tap(point.x, point.y)
        return "coordinates"

    def wait_until_settled(self) -> bool:
        """
        Fixed mode sleeps `settle_s`. Stable-frame mode polls screenshots and
        returns once two consecutive frames are identical, giving up after
        `settle_s`. Returns whether the screen was seen to settle.
        """
        if self.settle.mode == "fixed":
            if self.settle.settle_s > 0:
                self._sleep(self.settle.settle_s)
            return True

        deadline = self._clock() + self.settle.settle_s
        previous = _digest(self.driver.screenshot_png())
        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                print(f"  settle: no stable frame within {self.settle.settle_s}s, continuing")
                return False
            self._sleep(min(self.settle.poll_s, remaining))
            current = _digest(self.driver.screenshot_png())
            if current == previous:
                return True
            previous = current

    def _verify(self, destination: Destination) -> Optional[bool]:
        if destination.marker is None:
            return None
        probe = probe_element(self.driver, destination.marker)
        if probe.present:
            return True
        message = f"marker {destination.marker} not found after navigating to tab {destination.index}"
        if self.strict_verification:
            raise SequencerError(f"{destination.screenshot_name}: {message}")
        print(f"  WARNING: {message}; capturing anyway")
        return False

    def _capture(
        self,
        name: str,
        *,
        order: int,
        destination_index: Optional[int],
        navigation: str,
        verified: Optional[bool] = None,
    ) -> CapturedArtifact:
        path = self.store(name, self.driver.screenshot_png())
        print(f"  screenshot: {path}")
        return CapturedArtifact(
            name=name,
            path=path,
            order=order,
            destination_index=destination_index,
            navigation=navigation,
            verified=verified,
        )
