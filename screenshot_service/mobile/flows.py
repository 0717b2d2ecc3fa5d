from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..config import load_json_file, require_key, resolve_artifacts_dir
from .appium_http_client import AppiumHTTPClient
from .artifacts import ArtifactWriter, write_manifest
from .driver import AppiumUiDriver
from .plan import CapturePlan, load_capture_plan
from .sequencer import CapturedArtifact, ScreenshotSequencer


@dataclass(frozen=True)
class TabScreenshotRunResult:
    session_id: str
    artifacts: list[CapturedArtifact]
    manifest_path: Path


def build_sequencer(driver: AppiumUiDriver, plan: CapturePlan, *, artifacts_dir: Path) -> ScreenshotSequencer:
    return ScreenshotSequencer(
        driver,
        ArtifactWriter(artifacts_dir),
        tab_count=plan.tab_count,
        bottom_offset=plan.bottom_offset,
        settle=plan.settle,
        landing_name=plan.landing_name,
        launch_name=plan.launch_name,
        launch_settle_s=plan.launch_settle_s,
        strict_verification=plan.strict_verification,
        debug_accessibility=plan.debug_accessibility,
    )


def run_tab_screenshots(
    *,
    appium_server_url: str,
    capabilities_json_path: str,
    plan_json_path: str,
    artifacts_dir: Optional[str] = None,
) -> TabScreenshotRunResult:
    """
    Create a session (which launches the app), walk the plan's tabs capturing
    a screenshot per tab, write manifest.json, then teardown.

    The plan is parsed before any session is created so a bad plan never
    touches the device.
    """
    plan = load_capture_plan(plan_json_path)
    capabilities_payload = load_json_file(capabilities_json_path)
    require_key(capabilities_payload, "capabilities", context=capabilities_json_path)

    out_dir = resolve_artifacts_dir(artifacts_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    started_at = datetime.now()
    client = AppiumHTTPClient(appium_server_url)
    session_id = client.create_session(capabilities_payload)
    try:
        print("\n=== Tab Screenshot Run ===")
        print(f"Plan: {Path(plan_json_path).resolve()}")
        print(f"Session started: {session_id}")
        print(f"Artifacts: {out_dir}")

        driver = AppiumUiDriver(client, app_id=plan.app_id)
        driver.launch()
        artifacts = build_sequencer(driver, plan, artifacts_dir=out_dir).run(plan.destinations)
        manifest_path = write_manifest(
            out_dir,
            session_id=session_id,
            artifacts=artifacts,
            started_at=started_at,
        )
        return TabScreenshotRunResult(
            session_id=session_id,
            artifacts=artifacts,
            manifest_path=manifest_path,
        )
    finally:
        client.delete_session()
