"""Tests for the end-to-end screenshot run against a fake Appium client."""
import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))
from screenshot_service.mobile import flows
from screenshot_service.mobile.appium_http_client import WebDriverElementRef
from screenshot_service.mobile.plan import CapturePlanError


class FakeAppiumClient:
    instances = []

    def __init__(self, server_url, **kwargs):
        self.server_url = server_url
        self.session_id = None
        self.tapped = []
        self.activated = []
        self.deleted = False
        FakeAppiumClient.instances.append(self)

    def create_session(self, payload):
        self.session_id = "sess-1"
        return self.session_id

    def delete_session(self):
        self.deleted = True
        self.session_id = None

    def get_window_rect(self):
        return {"x": 0.0, "y": 0.0, "width": 390.0, "height": 844.0}

    def tap(self, *, x, y):
        self.tapped.append((x, y))

    def find_elements(self, *, using, value):
        if (using, value) == ("accessibility id", "settings_title"):
            return [WebDriverElementRef(element_id="el-title")]
        return []

    def get_element_attribute(self, element, *, name):
        return "Settings"

    def get_element_text(self, element):
        return "Settings"

    def click(self, element):
        raise AssertionError("no element should be clicked")

    def get_screenshot_png_bytes(self):
        return f"png-{len(self.tapped)}".encode()

    def get_page_source(self):
        return "<hierarchy />"

    def activate_app(self, *, app_id):
        self.activated.append(app_id)


@pytest.fixture
def fake_client(monkeypatch):
    FakeAppiumClient.instances = []
    monkeypatch.setattr(flows, "AppiumHTTPClient", FakeAppiumClient)
    return FakeAppiumClient


def _write_inputs(tmp_path, plan):
    caps = tmp_path / "caps.json"
    caps.write_text(json.dumps({"capabilities": {"alwaysMatch": {"platformName": "iOS"}}}), encoding="utf-8")
    plan = dict(plan)
    plan.setdefault("settle", {"settle_s": 0, "post_capture_s": 0})
    plan_path = tmp_path / "plan.json"
    plan_path.write_text(json.dumps(plan), encoding="utf-8")
    return str(caps), str(plan_path)


def test_run_writes_screenshots_and_manifest(tmp_path, fake_client):
    caps, plan = _write_inputs(
        tmp_path,
        {
            "landing_name": "02_Learn",
            "app_id": "com.example.app",
            "destinations": [
                {"index": 1, "screenshot_name": "03_Quiz"},
                {"index": 2, "screenshot_name": "04_Settings", "marker": "settings_title"},
            ],
        },
    )
    out_dir = tmp_path / "out"
    result = flows.run_tab_screenshots(
        appium_server_url="http://appium:4723",
        capabilities_json_path=caps,
        plan_json_path=plan,
        artifacts_dir=str(out_dir),
    )

    client = fake_client.instances[0]
    assert result.session_id == "sess-1"
    assert client.tapped == [(195, 754), (325, 754)]
    assert client.activated == ["com.example.app"]
    assert client.deleted is True

    assert [a.name for a in result.artifacts] == ["02_Learn", "03_Quiz", "04_Settings"]
    assert (out_dir / "02_Learn.png").read_bytes() == b"png-0"
    assert (out_dir / "03_Quiz.png").read_bytes() == b"png-1"
    assert (out_dir / "04_Settings.png").read_bytes() == b"png-2"

    manifest = json.loads(result.manifest_path.read_text(encoding="utf-8"))
    assert manifest["artifact_count"] == 3
    assert [row["name"] for row in manifest["artifacts"]] == ["02_Learn", "03_Quiz", "04_Settings"]
    assert [row["verified"] for row in manifest["artifacts"]] == [None, None, True]


def test_session_deleted_when_run_fails(tmp_path, fake_client, monkeypatch):
    caps, plan = _write_inputs(tmp_path, {"destinations": [{"index": 1, "screenshot_name": "03_Quiz"}]})

    def broken_tap(self, *, x, y):
        raise RuntimeError("device went away")

    monkeypatch.setattr(FakeAppiumClient, "tap", broken_tap)
    with pytest.raises(RuntimeError, match="device went away"):
        flows.run_tab_screenshots(
            appium_server_url="http://appium:4723",
            capabilities_json_path=caps,
            plan_json_path=plan,
            artifacts_dir=str(tmp_path / "out"),
        )
    assert fake_client.instances[0].deleted is True


def test_bad_plan_never_creates_session(tmp_path, fake_client):
    caps, plan = _write_inputs(tmp_path, {"destinations": [{"index": 5, "screenshot_name": "x"}]})
    with pytest.raises(CapturePlanError):
        flows.run_tab_screenshots(
            appium_server_url="http://appium:4723",
            capabilities_json_path=caps,
            plan_json_path=plan,
            artifacts_dir=str(tmp_path / "out"),
        )
    assert fake_client.instances == []


def test_artifacts_dir_from_environment(tmp_path, fake_client, monkeypatch):
    caps, plan = _write_inputs(tmp_path, {"destinations": []})
    monkeypatch.setenv("SCREENSHOT_ARTIFACTS_DIR", str(tmp_path / "env-out"))
    result = flows.run_tab_screenshots(
        appium_server_url="http://appium:4723",
        capabilities_json_path=caps,
        plan_json_path=plan,
    )
    assert result.manifest_path == (tmp_path / "env-out" / "manifest.json").resolve()
    assert (tmp_path / "env-out" / "01_Landing.png").exists()


def test_launch_screenshot_recorded_in_manifest(tmp_path, fake_client):
    caps, plan = _write_inputs(
        tmp_path,
        {
            "launch_name": "01_Launch",
            "landing_name": "02_Learn",
            "destinations": [{"index": 1, "screenshot_name": "03_Quiz"}],
        },
    )
    out_dir = tmp_path / "out"
    result = flows.run_tab_screenshots(
        appium_server_url="http://appium:4723",
        capabilities_json_path=caps,
        plan_json_path=plan,
        artifacts_dir=str(out_dir),
    )

    assert (out_dir / "01_Launch.png").read_bytes() == b"png-0"
    manifest = json.loads(result.manifest_path.read_text(encoding="utf-8"))
    assert manifest["artifact_count"] == 3
    rows = manifest["artifacts"]
    assert [(row["name"], row["navigation"]) for row in rows] == [
        ("01_Launch", "launch"),
        ("02_Learn", "landing"),
        ("03_Quiz", "coordinates"),
    ]
    assert [row["order"] for row in rows] == [0, 1, 2]


def test_colliding_file_names_never_create_session(tmp_path, fake_client):
    caps, plan = _write_inputs(
        tmp_path,
        {
            "destinations": [
                {"index": 1, "screenshot_name": "Tab 1"},
                {"index": 2, "screenshot_name": "Tab_1"},
            ]
        },
    )
    with pytest.raises(CapturePlanError, match="collides"):
        flows.run_tab_screenshots(
            appium_server_url="http://appium:4723",
            capabilities_json_path=caps,
            plan_json_path=plan,
            artifacts_dir=str(tmp_path / "out"),
        )
    assert fake_client.instances == []
    assert not (tmp_path / "out").exists()
