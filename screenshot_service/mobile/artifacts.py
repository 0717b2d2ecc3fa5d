from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional


def safe_stem(stem: str) -> str:
    cleaned = "".join(c if c.isalnum() or c in ("-", "_") else "_" for c in stem.strip())
    return cleaned or "artifact"


class ArtifactWriter:
    """
    Writes screenshots as `<dir>/<name>.png`.

    Each name is write-once per writer: capturing the same name twice in one
    run is a bug in the destination list, so it raises instead of overwriting.
    """

    def __init__(self, artifacts_dir: Path) -> None:
        self.artifacts_dir = artifacts_dir
        self._written: set[str] = set()

    def __call__(self, name: str, png_bytes: bytes) -> Path:
        stem = safe_stem(name)
        if stem in self._written:
            raise FileExistsError(f"Artifact {stem!r} was already written in this run")
        self.artifacts_dir.mkdir(parents=True, exist_ok=True)
        path = self.artifacts_dir / f"{stem}.png"
        path.write_bytes(png_bytes)
        self._written.add(stem)
        return path


def write_manifest(
    artifacts_dir: Path,
    *,
    session_id: Optional[str],
    artifacts: Iterable[Any],
    started_at: datetime,
) -> Path:
    """
    Record the capture order for whatever packages/uploads the screenshots next.
    """
    rows = []
    for artifact in artifacts:
        rows.append(
            {
                "order": artifact.order,
                "name": artifact.name,
                "path": str(artifact.path),
                "destination_index": artifact.destination_index,
                "navigation": artifact.navigation,
                "verified": artifact.verified,
            }
        )
    payload = {
        "timestamp_start": started_at.isoformat(),
        "timestamp_end": datetime.now().isoformat(),
        "session_id": session_id,
        "artifact_count": len(rows),
        "artifacts": rows,
    }
    artifacts_dir.mkdir(parents=True, exist_ok=True)
    path = artifacts_dir / "manifest.json"
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path
