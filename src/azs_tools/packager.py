"""Invocation of the external marketplace packager."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from azs_tools.settings import settings

logger = logging.getLogger(__name__)


class PackagerError(RuntimeError):
    """The packager exited with a non-zero status or did not finish in time."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


def packager_command(packager_path: Path, manifest_path: Path, destination: Path) -> list[str]:
    """Return the argv for packaging *manifest_path* into *destination*."""
    return [str(packager_path), "package", "-m", str(manifest_path), "-o", str(destination)]


def run_packager(
    packager_path: str | Path,
    manifest_path: str | Path,
    destination: str | Path,
    timeout: int | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run the packager to completion.

    Raises :class:`PackagerError` when the process fails, so callers never
    look for an artifact that was not written.
    """
    cmd = packager_command(Path(packager_path), Path(manifest_path), Path(destination))
    logger.info("Running packager: %s", " ".join(cmd))
    try:
        proc = subprocess.run(  # noqa: S603
            cmd,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout or settings.packager_timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise PackagerError(f"Packager timed out after {exc.timeout}s for {manifest_path}") from exc

    if proc.returncode != 0:
        stderr = (proc.stderr or "").strip()
        logger.error("Packager failed (exit %s): %s", proc.returncode, stderr)
        raise PackagerError(
            f"Packager exited with status {proc.returncode} for {manifest_path}",
            returncode=proc.returncode,
            stderr=stderr,
        )
    if proc.stdout:
        logger.debug("Packager output: %s", proc.stdout.strip())
    return proc
