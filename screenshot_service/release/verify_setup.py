from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Optional

REQUIRED_ALWAYS = (
    "FASTLANE_TEAM_ID",
    "MATCH_PASSWORD",
    "MATCH_GIT_URL",
    "MATCH_CERTS_PAT",
)
API_KEY_JSON_PATH_VAR = "FASTLANE_API_KEY_PATH"
API_KEY_CONTENT_VAR = "APP_STORE_CONNECT_API_KEY_CONTENT"
INDIVIDUAL_VARS = (
    "APP_STORE_CONNECT_API_KEY_ID",
    "APP_STORE_CONNECT_ISSUER_ID",
    "APP_STORE_CONNECT_API_KEY_PATH",
)
_PATH_VARS = {"APP_STORE_CONNECT_API_KEY_PATH"}

STATUS_OK = "ok"
STATUS_WARN = "warn"
STATUS_FAIL = "fail"
_ICONS = {STATUS_OK: "✅", STATUS_WARN: "⚠️ ", STATUS_FAIL: "❌"}

METHOD_JSON = "json"
METHOD_CONTENT_AND_INDIVIDUAL = "content+individual"
METHOD_INDIVIDUAL = "individual"
METHOD_CONTENT = "content"
METHOD_NONE = "none"

NEXT_STEPS = (
    "Local test: cd ios && fastlane beta",
    "CI test: gh workflow run ios-deploy.yml --ref main",
    "Monitor: gh run watch",
)


@dataclass(frozen=True)
class CheckResult:
    group: str
    name: str
    status: str
    detail: str
    notes: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SetupReport:
    environment: str
    checks: list[CheckResult]
    method: str
    recommendation: list[str]

    @property
    def required_ok(self) -> bool:
        return all(c.status == STATUS_OK for c in self.checks if c.group == "required")

    @property
    def ok(self) -> bool:
        return self.required_ok and self.method != METHOD_NONE


def mask(value: str, *, visible: int = 11) -> str:
    return f"{value[:visible]}..."


def _is_set(environ: Mapping[str, str], key: str) -> bool:
    return bool(environ.get(key))


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _check_required(environ: Mapping[str, str]) -> list[CheckResult]:
    out: list[CheckResult] = []
    for var in REQUIRED_ALWAYS:
        if _is_set(environ, var):
            out.append(CheckResult("required", var, STATUS_OK, f"Set ({mask(environ[var])})"))
        else:
            out.append(CheckResult("required", var, STATUS_FAIL, "Missing"))
    return out


def _check_api_key_json(
    environ: Mapping[str, str],
    *,
    path_exists: Callable[[str], bool],
    read_text: Callable[[str], str],
) -> CheckResult:
    json_path = environ.get(API_KEY_JSON_PATH_VAR)
    if not json_path:
        return CheckResult("api_key", API_KEY_JSON_PATH_VAR, STATUS_WARN, "Not set")
    if not path_exists(json_path):
        return CheckResult("api_key", API_KEY_JSON_PATH_VAR, STATUS_FAIL, f"{json_path} (file not found)")

    notes: list[str] = []
    status = STATUS_OK
    try:
        data = json.loads(read_text(json_path))
        if not isinstance(data, dict):
            raise ValueError("expected a JSON object")
        issuer_id = str(data.get("issuer_id") or "")
        notes.append(f"JSON contains: key_id={data.get('key_id')}, issuer_id={mask(issuer_id)}")
        notes.append(f"Key content: {'Present' if data.get('key') else 'Missing'}")
    except (OSError, ValueError) as e:
        status = STATUS_FAIL
        notes.append(f"JSON parse error: {e}")
    return CheckResult("api_key", API_KEY_JSON_PATH_VAR, status, f"{json_path} (exists)", notes)


def _check_api_key_content(environ: Mapping[str, str]) -> CheckResult:
    if _is_set(environ, API_KEY_CONTENT_VAR):
        length = len(environ[API_KEY_CONTENT_VAR])
        return CheckResult("api_key", API_KEY_CONTENT_VAR, STATUS_OK, f"Present ({length} chars)")
    return CheckResult("api_key", API_KEY_CONTENT_VAR, STATUS_WARN, "Not set")


def _check_individual(environ: Mapping[str, str], *, path_exists: Callable[[str], bool]) -> list[CheckResult]:
    out: list[CheckResult] = []
    for var in INDIVIDUAL_VARS:
        if not _is_set(environ, var):
            out.append(CheckResult("individual", var, STATUS_FAIL, "Missing"))
            continue
        value = environ[var]
        if var in _PATH_VARS:
            exists = path_exists(value)
            out.append(
                CheckResult(
                    "individual",
                    var,
                    STATUS_OK if exists else STATUS_FAIL,
                    f"{value} ({'exists' if exists else 'not found'})",
                )
            )
        else:
            out.append(CheckResult("individual", var, STATUS_OK, value))
    return out


def detect_method(*, has_json: bool, has_content: bool, has_individual: bool) -> str:
    if has_json:
        return METHOD_JSON
    if has_content and has_individual:
        return METHOD_CONTENT_AND_INDIVIDUAL
    if has_individual:
        return METHOD_INDIVIDUAL
    if has_content:
        return METHOD_CONTENT
    return METHOD_NONE


def recommendation_for(method: str) -> list[str]:
    if method == METHOD_JSON:
        return [
            "✅ Perfect! You're using the recommended JSON file method.",
            "   This will work great for local development.",
        ]
    if method == METHOD_CONTENT_AND_INDIVIDUAL:
        return ["✅ Good! You have CI-compatible setup with content and individual params."]
    if method == METHOD_INDIVIDUAL:
        return [
            "⚠️  You're using individual parameters. Consider switching to JSON file method:",
            "   1. Create ~/.appstoreconnect/private/AuthKey_[KEY_ID].json",
            f"   2. Add {API_KEY_JSON_PATH_VAR} to ~/.zshrc",
        ]
    if method == METHOD_CONTENT:
        return ["⚠️  You only have content method (CI-style). For local development, also set individual params."]
    return [
        "❌ No valid API key configuration found!",
        "   Set up at least one of: API key JSON file, key content, or individual key parameters.",
    ]


def verify_release_setup(
    environ: Optional[Mapping[str, str]] = None,
    *,
    path_exists: Optional[Callable[[str], bool]] = None,
    read_text: Optional[Callable[[str], str]] = None,
) -> SetupReport:
    """
    Inspect env vars (and the files they point at) that the release lanes
    need, without contacting App Store Connect or the match repo.
    """
    env = os.environ if environ is None else environ
    exists = path_exists or os.path.exists
    reader = read_text or _read_text

    checks = _check_required(env)
    json_check = _check_api_key_json(env, path_exists=exists, read_text=reader)
    content_check = _check_api_key_content(env)
    individual_checks = _check_individual(env, path_exists=exists)
    checks.extend([json_check, content_check, *individual_checks])

    # An existing JSON file counts as the method even when it fails to parse; that failure is reported above.
    json_path = env.get(API_KEY_JSON_PATH_VAR)
    has_json = bool(json_path) and exists(json_path)
    method = detect_method(
        has_json=has_json,
        has_content=content_check.status == STATUS_OK,
        has_individual=all(c.status == STATUS_OK for c in individual_checks),
    )
    return SetupReport(
        environment="CI" if env.get("CI") == "true" else "Local",
        checks=checks,
        method=method,
        recommendation=recommendation_for(method),
    )


def _format_check(check: CheckResult) -> list[str]:
    lines = [f"{_ICONS[check.status]} {check.name}: {check.detail}"]
    for note in check.notes:
        icon = "❌" if check.status == STATUS_FAIL else "📄"
        lines.append(f"   {icon} {note}")
    return lines


def format_setup_report(report: SetupReport) -> str:
    lines = ["🔍 Release Environment Verification", "=" * 50, f"Environment: {report.environment}", ""]

    lines.append("📋 Checking required environment variables...")
    for check in report.checks:
        if check.group == "required":
            lines.extend(_format_check(check))
    lines.append("")

    lines.append("🔑 Checking App Store Connect API Key configuration...")
    for check in report.checks:
        if check.group == "api_key":
            lines.extend(_format_check(check))

    lines.extend(["", "📝 Individual API key parameters:"])
    for check in report.checks:
        if check.group == "individual":
            lines.extend(_format_check(check))

    lines.extend(["", "🎯 Recommendations:", *report.recommendation])
    lines.extend(["", "🚀 Next steps:"])
    lines.extend(f"{i}. {step}" for i, step in enumerate(NEXT_STEPS, 1))
    return "\n".join(lines)
