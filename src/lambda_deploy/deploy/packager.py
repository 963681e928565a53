"""Zip packaging of function code artifacts.

Copies the artifacts directory into a temporary staging directory, zips it,
and verifies the archive before handing its path to the deployer.
"""

from __future__ import annotations

import shutil
import tempfile
import time
import zipfile
from pathlib import Path

from lambda_deploy.lib.errors import DeploymentError
from lambda_deploy.lib.logging_config import get_logger
from lambda_deploy.lib.validation import validate_and_resolve_path

logger = get_logger(__name__)


def package_code_artifacts(
    artifacts_dir: str | Path, *, base_dir: str | Path | None = None
) -> Path:
    """Package a directory into a deployable zip archive.

    Args:
        artifacts_dir: Directory holding the function code
        base_dir: Directory the artifacts must live under (default: cwd)

    Returns:
        Path to the generated zip file

    Raises:
        DeploymentError: If the directory is missing, empty, inaccessible,
            outside base_dir, or the archive fails verification
    """
    if not artifacts_dir:
        raise DeploymentError(
            operation="package",
            message="Code artifacts directory path must be provided",
        )

    try:
        resolved = validate_and_resolve_path(artifacts_dir, base_dir or Path.cwd())
    except ValueError as exc:
        raise DeploymentError(operation="package", message=str(exc)) from exc

    if not resolved.is_dir():
        raise DeploymentError(
            operation="package",
            message=(
                f"Code artifacts directory '{resolved}' does not exist "
                "or is not accessible"
            ),
        )

    try:
        entries = sorted(resolved.iterdir())
    except OSError as exc:
        raise DeploymentError(
            operation="package",
            message=(
                f"Code artifacts directory '{resolved}' does not exist "
                f"or is not accessible: {exc}"
            ),
        ) from exc

    if not entries:
        raise DeploymentError(
            operation="package",
            message=(
                f"Code artifacts directory '{resolved}' is empty, "
                "no files to package"
            ),
        )

    logger.info(f"Found {len(entries)} files/directories to copy")

    stamp = time.time_ns()
    zip_path = Path(tempfile.gettempdir()) / f"lambda-function-{stamp}.zip"
    staging_dir = Path(tempfile.mkdtemp(prefix="lambda-temp-"))

    try:
        _stage_artifacts(entries, staging_dir)
        _write_zip(staging_dir, zip_path)
        _verify_zip(zip_path)
    except OSError as exc:
        logger.error(f"Failed to package artifacts: {exc}")
        zip_path.unlink(missing_ok=True)
        raise DeploymentError(
            operation="package",
            message=f"Failed to package artifacts: {exc}",
        ) from exc
    except DeploymentError:
        zip_path.unlink(missing_ok=True)
        raise
    finally:
        shutil.rmtree(staging_dir, ignore_errors=True)

    return zip_path


def _stage_artifacts(entries: list[Path], staging_dir: Path) -> None:
    """Copy artifacts into the staging directory."""
    logger.info(f"Copying artifacts to {staging_dir}")
    for source in entries:
        destination = staging_dir / source.name
        logger.debug(f"Copying {source} to {destination}")
        if source.is_dir():
            shutil.copytree(source, destination)
        else:
            shutil.copy2(source, destination)


def _write_zip(staging_dir: Path, zip_path: Path) -> None:
    """Zip the staging directory with paths relative to its root."""
    logger.info("Creating ZIP file")
    with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as archive:
        for path in sorted(staging_dir.rglob("*")):
            arcname = path.relative_to(staging_dir).as_posix()
            if path.is_dir():
                logger.debug(f"Adding directory: {arcname}")
            else:
                logger.debug(f"Adding file: {arcname}")
            archive.write(path, arcname)


def _verify_zip(zip_path: Path) -> None:
    """Re-open the archive and log its entries.

    Raises:
        DeploymentError: If the archive cannot be read back
    """
    logger.info(f"Generated ZIP file size: {zip_path.stat().st_size} bytes")
    try:
        with zipfile.ZipFile(zip_path) as archive:
            bad_entry = archive.testzip()
            if bad_entry is not None:
                raise zipfile.BadZipFile(f"corrupt entry {bad_entry}")
            infos = archive.infolist()
    except zipfile.BadZipFile as exc:
        raise DeploymentError(
            operation="package",
            message=f"ZIP validation failed: {exc}",
        ) from exc

    logger.info(f"ZIP verification passed - contains {len(infos)} entries")
    for index, info in enumerate(infos, start=1):
        logger.debug(f"  {index}. {info.filename} ({info.file_size} bytes)")
