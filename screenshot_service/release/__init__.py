"""
Pre-release checks for the iOS delivery lanes (match + App Store Connect API key).
"""

from .verify_setup import SetupReport, format_setup_report, verify_release_setup

__all__ = ["SetupReport", "format_setup_report", "verify_release_setup"]
