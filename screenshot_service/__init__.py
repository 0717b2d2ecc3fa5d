"""
Release tooling for the mobile app: store screenshot capture and
pre-release credential checks.
"""
