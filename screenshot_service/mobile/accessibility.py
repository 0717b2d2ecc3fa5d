from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from xml.etree import ElementTree

# iOS XCUITest reports element types as tag names, UIAutomator as a `class` attribute.
_IOS_BUTTON = "XCUIElementTypeButton"
_IOS_TAB_BAR = "XCUIElementTypeTabBar"
_IOS_NAV_BAR = "XCUIElementTypeNavigationBar"
_ANDROID_BUTTON_SUFFIXES = ("Button", "ImageButton")
_ANDROID_TAB_BAR_HINTS = ("BottomNavigationView", "NavigationBarView", "TabLayout")
_ANDROID_NAV_BAR_HINTS = ("Toolbar", "ActionBar")


@dataclass(frozen=True)
class ButtonInfo:
    identifier: Optional[str]
    label: Optional[str]
    hittable: Optional[bool]


@dataclass(frozen=True)
class AccessibilitySummary:
    tab_bar_count: int
    navigation_bar_count: int
    button_count: int
    buttons: list[ButtonInfo] = field(default_factory=list)
    tab_bar_buttons: list[ButtonInfo] = field(default_factory=list)


def _kind(el: ElementTree.Element) -> str:
    return el.attrib.get("type") or el.attrib.get("class") or el.tag


def _is_button(el: ElementTree.Element) -> bool:
    kind = _kind(el)
    if kind == _IOS_BUTTON:
        return True
    if el.attrib.get("class"):
        return kind.endswith(_ANDROID_BUTTON_SUFFIXES)
    return False


def _is_tab_bar(el: ElementTree.Element) -> bool:
    kind = _kind(el)
    return kind == _IOS_TAB_BAR or any(h in kind for h in _ANDROID_TAB_BAR_HINTS)


def _is_navigation_bar(el: ElementTree.Element) -> bool:
    kind = _kind(el)
    return kind == _IOS_NAV_BAR or any(h in kind for h in _ANDROID_NAV_BAR_HINTS)


def _parse_bool(raw: Optional[str]) -> Optional[bool]:
    if raw is None:
        return None
    return raw.strip().lower() == "true"


def _button_info(el: ElementTree.Element) -> ButtonInfo:
    attrib = el.attrib
    identifier = attrib.get("name") or attrib.get("resource-id") or None
    label = attrib.get("label") or attrib.get("content-desc") or attrib.get("text") or None
    # XCUITest: `hittable`; UIAutomator's closest equivalent is `clickable`.
    hittable = _parse_bool(attrib.get("hittable", attrib.get("clickable")))
    return ButtonInfo(identifier=identifier, label=label, hittable=hittable)


def summarize_accessibility(page_source_xml: str, *, limit: int = 10) -> AccessibilitySummary:
    """
    Summarise a `/source` dump the way you'd eyeball it when tab lookups fail:
    how many tab bars / navigation bars / buttons exist, and what the first
    `limit` buttons (overall and inside the first tab bar) are called.

    Handles both XCUITest and UIAutomator2 XML.
    """
    if not page_source_xml.strip():
        return AccessibilitySummary(tab_bar_count=0, navigation_bar_count=0, button_count=0)

    try:
        root = ElementTree.fromstring(page_source_xml)
    except ElementTree.ParseError as e:
        raise ValueError(f"Failed to parse page source XML: {e}") from e

    tab_bars: list[ElementTree.Element] = []
    nav_bar_count = 0
    buttons: list[ElementTree.Element] = []
    for el in root.iter():
        if _is_tab_bar(el):
            tab_bars.append(el)
        elif _is_navigation_bar(el):
            nav_bar_count += 1
        if _is_button(el):
            buttons.append(el)

    tab_bar_buttons: list[ButtonInfo] = []
    if tab_bars:
        first = tab_bars[0]
        # Bottom-navigation items on Android are clickable layouts, not Buttons.
        tab_bar_buttons = [
            _button_info(el)
            for el in first.iter()
            if el is not first and (_is_button(el) or el.attrib.get("clickable") == "true")
        ][:limit]

    return AccessibilitySummary(
        tab_bar_count=len(tab_bars),
        navigation_bar_count=nav_bar_count,
        button_count=len(buttons),
        buttons=[_button_info(el) for el in buttons[:limit]],
        tab_bar_buttons=tab_bar_buttons,
    )


def format_accessibility_summary(summary: AccessibilitySummary) -> str:
    lines = [
        "",
        "=== ACCESSIBILITY TREE DEBUG ===",
        f"TabBars count: {summary.tab_bar_count}",
        f"NavigationBars count: {summary.navigation_bar_count}",
        f"Buttons count: {summary.button_count}",
        "",
        "All buttons:",
    ]
    for i, b in enumerate(summary.buttons):
        lines.append(f"Button {i}: identifier={b.identifier or ''!r}, label={b.label or ''!r}, isHittable={b.hittable}")
    lines.extend(["", "TabBar buttons:"])
    for i, b in enumerate(summary.tab_bar_buttons):
        lines.append(
            f"TabBar Button {i}: identifier={b.identifier or ''!r}, label={b.label or ''!r}, isHittable={b.hittable}"
        )
    lines.extend(["=== END ACCESSIBILITY TREE ===", ""])
    return "\n".join(lines)
