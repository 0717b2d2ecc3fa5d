#!/usr/bin/env python3
"""
HTTP server for the release tooling.
"""

from __future__ import annotations

import threading
from dataclasses import asdict

from flask import Flask, jsonify, request

from .config import DEFAULT_APPIUM_SERVER_URL
from .mobile.flows import run_tab_screenshots
from .release.verify_setup import verify_release_setup

app = Flask(__name__)


@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok"})


@app.route('/setup/verify', methods=['GET'])
def verify_setup():
    """Run the release credential checks against this process's environment."""
    report = verify_release_setup()
    return jsonify({
        "ok": report.ok,
        "environment": report.environment,
        "method": report.method,
        "checks": [asdict(c) for c in report.checks],
        "recommendation": report.recommendation,
    })


@app.route('/capture', methods=['POST'])
def capture():
    """Start a tab screenshot run (runs in background)."""
    data = request.get_json(silent=True) or {}
    plan_json_path = data.get('plan_json_path')
    capabilities_json_path = data.get('capabilities_json_path')
    if not plan_json_path or not capabilities_json_path:
        return jsonify({"error": "plan_json_path and capabilities_json_path are required"}), 400

    appium_server_url = data.get('appium_server_url') or DEFAULT_APPIUM_SERVER_URL
    artifacts_dir = data.get('artifacts_dir')

    def run_capture():
        try:
            run_tab_screenshots(
                appium_server_url=appium_server_url,
                capabilities_json_path=capabilities_json_path,
                plan_json_path=plan_json_path,
                artifacts_dir=artifacts_dir,
            )
        except Exception as e:
            print(f"Error in capture: {e}")

    thread = threading.Thread(target=run_capture)
    thread.daemon = True
    thread.start()

    return jsonify({
        "status": "started",
        "plan_json_path": plan_json_path,
        "message": "Screenshot run started. Check logs for progress."
    })


if __name__ == '__main__':
    app.run(host='127.0.0.1', port=8083)
