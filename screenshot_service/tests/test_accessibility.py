"""Tests for the accessibility tree summary."""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))
from screenshot_service.mobile.accessibility import format_accessibility_summary, summarize_accessibility

IOS_XML = """
<AppiumAUT>
  <XCUIElementTypeApplication type="XCUIElementTypeApplication" name="Runner">
    <XCUIElementTypeNavigationBar type="XCUIElementTypeNavigationBar" name="Learn" />
    <XCUIElementTypeButton type="XCUIElementTypeButton" name="start" label="Start" hittable="true" />
    <XCUIElementTypeTabBar type="XCUIElementTypeTabBar">
      <XCUIElementTypeButton type="XCUIElementTypeButton" name="learn_tab" label="Learn" hittable="true" />
      <XCUIElementTypeButton type="XCUIElementTypeButton" name="quiz_tab" label="Quiz" hittable="true" />
      <XCUIElementTypeButton type="XCUIElementTypeButton" name="settings_tab" label="Settings" hittable="false" />
    </XCUIElementTypeTabBar>
  </XCUIElementTypeApplication>
</AppiumAUT>
""".strip()

ANDROID_XML = """
<hierarchy>
  <node class="android.widget.FrameLayout">
    <node class="androidx.appcompat.widget.Toolbar" />
    <node class="android.widget.Button" resource-id="app:id/start" text="Start" clickable="true" />
    <node class="com.google.android.material.bottomnavigation.BottomNavigationView">
      <node class="android.widget.FrameLayout" content-desc="Learn" clickable="true" />
      <node class="android.widget.FrameLayout" content-desc="Quiz" clickable="true" />
    </node>
  </node>
</hierarchy>
""".strip()


def test_ios_counts_and_buttons():
    summary = summarize_accessibility(IOS_XML)
    assert summary.tab_bar_count == 1
    assert summary.navigation_bar_count == 1
    assert summary.button_count == 4
    assert [b.label for b in summary.tab_bar_buttons] == ["Learn", "Quiz", "Settings"]
    assert summary.tab_bar_buttons[2].hittable is False
    assert summary.buttons[0].identifier == "start"


def test_android_bottom_navigation_items():
    summary = summarize_accessibility(ANDROID_XML)
    assert summary.tab_bar_count == 1
    assert summary.navigation_bar_count == 1
    assert summary.button_count == 1
    assert [b.label for b in summary.tab_bar_buttons] == ["Learn", "Quiz"]


def test_limit_caps_listed_buttons():
    summary = summarize_accessibility(IOS_XML, limit=2)
    assert summary.button_count == 4
    assert len(summary.buttons) == 2
    assert len(summary.tab_bar_buttons) == 2


def test_empty_source():
    summary = summarize_accessibility("   ")
    assert summary.button_count == 0
    assert summary.buttons == []


def test_invalid_xml_raises():
    with pytest.raises(ValueError):
        summarize_accessibility("<hierarchy>")


def test_format_includes_tab_bar_section():
    text = format_accessibility_summary(summarize_accessibility(IOS_XML))
    assert "=== ACCESSIBILITY TREE DEBUG ===" in text
    assert "TabBars count: 1" in text
    assert "TabBar Button 1: identifier='quiz_tab', label='Quiz', isHittable=True" in text
