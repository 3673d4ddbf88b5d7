"""Persistence helpers for emitted artifacts."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable


class EmitterError(RuntimeError):
    """Raised when a projection produces output violating its contract."""


@dataclass(frozen=True, slots=True)
class Artifact:
    """An opaque payload and the relative destination it is written to."""

    destination: str
    payload: bytes


def write_artifacts(
    artifacts: Iterable[Artifact],
    root: Path,
    *,
    prune: tuple[str, ...] = (),
) -> list[Path]:
    """Write artifacts below ``root``.

    Files directly inside ``root`` matching a ``prune`` glob that were not
    rewritten are removed, so a kind dropped from the schema leaves no stale
    data behind.
    """
    root.mkdir(parents=True, exist_ok=True)
    existing_files = {path for pattern in prune for path in root.glob(pattern)}
    written: list[Path] = []

    for artifact in artifacts:
        path = root / artifact.destination
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(artifact.payload)
        written.append(path)
        existing_files.discard(path)

    for leftover in sorted(existing_files):
        leftover.unlink(missing_ok=True)

    return written
