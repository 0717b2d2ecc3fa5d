#!/usr/bin/env python3
"""
CLI entry point for the release tooling.

  python -m screenshot_service.cli capture --plan plan.json --capabilities caps.json
  python -m screenshot_service.cli verify-setup
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional

from .config import DEFAULT_APPIUM_SERVER_URL
from .env import ensure_dotenv_loaded

DEFAULT_CAPABILITIES_PATH = "screenshot_service/mobile_examples/ios_capabilities.example.json"
DEFAULT_PLAN_PATH = "screenshot_service/mobile_examples/tab_plan.example.json"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Store screenshot capture and release setup checks.")
    sub = parser.add_subparsers(dest="command", required=True)

    capture = sub.add_parser("capture", help="Walk the app's tabs and capture one screenshot per tab.")
    capture.add_argument(
        "--appium-server-url",
        default=DEFAULT_APPIUM_SERVER_URL,
        help=f"Appium server URL (default: {DEFAULT_APPIUM_SERVER_URL}).",
    )
    capture.add_argument(
        "--capabilities",
        default=DEFAULT_CAPABILITIES_PATH,
        help="Path to a WebDriver session payload JSON ({\"capabilities\": {...}}).",
    )
    capture.add_argument("--plan", default=DEFAULT_PLAN_PATH, help="Path to the tab capture plan JSON.")
    capture.add_argument(
        "--artifacts-dir",
        default="",
        help="Where screenshots and manifest.json go (default: $SCREENSHOT_ARTIFACTS_DIR or ./artifacts).",
    )

    sub.add_parser("verify-setup", help="Check release credentials in the environment and local files.")
    return parser


def run_capture(args: argparse.Namespace) -> int:
    from .mobile.flows import run_tab_screenshots

    try:
        result = run_tab_screenshots(
            appium_server_url=args.appium_server_url,
            capabilities_json_path=args.capabilities,
            plan_json_path=args.plan,
            artifacts_dir=args.artifacts_dir or None,
        )
    except Exception as e:
        print(f"ERROR: screenshot run failed: {e}", file=sys.stderr)
        return 1

    print("\n✓ Screenshot run completed")
    print(f"  Session: {result.session_id}")
    for artifact in result.artifacts:
        flag = "" if artifact.verified is not False else "  (unverified)"
        print(f"  {artifact.order:>2}. {artifact.name}: {artifact.path}{flag}")
    print(f"  Manifest: {result.manifest_path}")
    return 0


def run_verify_setup(args: argparse.Namespace) -> int:
    from .release.verify_setup import format_setup_report, verify_release_setup

    ensure_dotenv_loaded()
    report = verify_release_setup()
    print(format_setup_report(report))
    return 0 if report.ok else 1


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.command == "capture":
        return run_capture(args)
    return run_verify_setup(args)


if __name__ == "__main__":
    raise SystemExit(main())
