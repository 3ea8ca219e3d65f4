"""Marketplace item manifest model."""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

PACKAGE_SUFFIX = ".azpkg"


class ManifestError(ValueError):
    """The manifest could not be read or lacks an identity field."""


class Manifest(BaseModel):
    """Identity fields of a marketplace item manifest.

    Only ``publisher``, ``name`` and ``version`` are consumed; any other
    field of the manifest is ignored.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    publisher: str = Field(validation_alias=AliasChoices("publisher", "Publisher"), min_length=1)
    name: str = Field(validation_alias=AliasChoices("name", "Name"), min_length=1)
    version: str = Field(validation_alias=AliasChoices("version", "Version"), min_length=1)

    @property
    def identity(self) -> str:
        """Gallery item identity, ``publisher.name.version``."""
        return f"{self.publisher}.{self.name}.{self.version}"

    @property
    def package_filename(self) -> str:
        """File name the packager writes for this manifest."""
        return f"{self.identity}{PACKAGE_SUFFIX}"


def load_manifest(path: str | Path) -> Manifest:
    """Parse the manifest JSON at *path*."""
    manifest_path = Path(path)
    try:
        return Manifest.model_validate_json(manifest_path.read_text(encoding="utf-8-sig"))
    except ValidationError as exc:
        raise ManifestError(f"Invalid manifest {manifest_path}: {exc}") from exc
