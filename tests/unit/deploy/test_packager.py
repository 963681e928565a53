"""Unit tests for zip packaging of code artifacts."""

from __future__ import annotations

import tempfile
import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest

from lambda_deploy.deploy.packager import package_code_artifacts
from lambda_deploy.lib.errors import DeploymentError


@pytest.mark.unit
class TestPackageCodeArtifacts:
    """Tests for package_code_artifacts."""

    def test_packages_nested_files(self, tmp_path: Path) -> None:
        """Files and subdirectories are zipped relative to the artifacts root."""
        artifacts = tmp_path / "dist"
        (artifacts / "lib").mkdir(parents=True)
        (artifacts / "index.js").write_text("exports.handler = () => {};")
        (artifacts / "lib" / "util.js").write_text("module.exports = {};")

        zip_path = package_code_artifacts("dist", base_dir=tmp_path)

        try:
            assert zip_path.name.startswith("lambda-function-")
            with zipfile.ZipFile(zip_path) as archive:
                names = set(archive.namelist())
            assert "index.js" in names
            assert "lib/util.js" in names
        finally:
            zip_path.unlink(missing_ok=True)

    def test_empty_path_rejected(self, tmp_path: Path) -> None:
        """An empty artifacts path is an error."""
        with pytest.raises(DeploymentError, match="must be provided"):
            package_code_artifacts("", base_dir=tmp_path)

    def test_missing_directory(self, tmp_path: Path) -> None:
        """A missing directory is reported."""
        with pytest.raises(DeploymentError, match="does not exist"):
            package_code_artifacts("missing", base_dir=tmp_path)

    def test_empty_directory(self, tmp_path: Path) -> None:
        """An empty directory has nothing to package."""
        (tmp_path / "dist").mkdir()

        with pytest.raises(DeploymentError, match="is empty"):
            package_code_artifacts("dist", base_dir=tmp_path)

    def test_path_traversal_rejected(self, tmp_path: Path) -> None:
        """Paths escaping the base directory are rejected."""
        base = tmp_path / "project"
        base.mkdir()
        (tmp_path / "outside").mkdir()

        with pytest.raises(DeploymentError, match="Path traversal") as exc_info:
            package_code_artifacts("../outside", base_dir=base)

        assert exc_info.value.operation == "package"

    def test_failed_verification_removes_zip(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A zip that fails verification is not left in the temp directory."""
        artifacts = tmp_path / "dist"
        artifacts.mkdir()
        (artifacts / "index.js").write_text("exports.handler = () => {};")
        temp_dir = tmp_path / "tmp"
        temp_dir.mkdir()
        monkeypatch.setattr(tempfile, "gettempdir", lambda: str(temp_dir))

        with patch(
            "lambda_deploy.deploy.packager._verify_zip",
            side_effect=DeploymentError(
                operation="package", message="ZIP validation failed: bad"
            ),
        ):
            with pytest.raises(DeploymentError, match="ZIP validation failed"):
                package_code_artifacts("dist", base_dir=tmp_path)

        assert list(temp_dir.glob("lambda-function-*.zip")) == []

    def test_write_failure_removes_partial_zip(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An OSError mid-write removes the partial archive."""
        artifacts = tmp_path / "dist"
        artifacts.mkdir()
        (artifacts / "index.js").write_text("exports.handler = () => {};")
        temp_dir = tmp_path / "tmp"
        temp_dir.mkdir()
        monkeypatch.setattr(tempfile, "gettempdir", lambda: str(temp_dir))

        def partial_write(staging_dir: Path, zip_path: Path) -> None:
            zip_path.write_bytes(b"PK")
            raise OSError(28, "No space left on device")

        with patch(
            "lambda_deploy.deploy.packager._write_zip", side_effect=partial_write
        ):
            with pytest.raises(DeploymentError, match="No space left on device"):
                package_code_artifacts("dist", base_dir=tmp_path)

        assert list(temp_dir.glob("lambda-function-*.zip")) == []
