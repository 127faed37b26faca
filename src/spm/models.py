"""Data models for spm.toml, spm.lock and spm.json."""

from typing import Any, Dict, List, Optional, Union
from pydantic import AliasChoices, BaseModel, Field, field_validator


def _camel(name: str, snake: str) -> Dict[str, Any]:
    """Field aliases: decode either spelling, always encode camelCase."""
    return {
        "validation_alias": AliasChoices(name, snake),
        "serialization_alias": name,
    }


class PlatformArtifact(BaseModel):
    """A single release asset built for one (os, cpu) pair."""
    os: str
    cpu: str
    asset_name: str = Field(**_camel("assetName", "asset_name"))
    asset_sha256: str = Field(**_camel("assetSha256", "asset_sha256"))
    asset_md5: str = Field(default="", **_camel("assetMd5", "asset_md5"))


class PackageReleaseManifest(BaseModel):
    """spm.json, published by extension authors next to every release."""
    version: int = 0
    description: str = ""
    loadable: List[PlatformArtifact]

    def find_artifact(self, os: str, cpu: str) -> Optional[PlatformArtifact]:
        """Return the first artifact matching ``os``/``cpu`` exactly."""
        for artifact in self.loadable:
            if artifact.os == os and artifact.cpu == cpu:
                return artifact
        return None


class PinnedVersion(BaseModel):
    """``"https://github.com/owner/repo" = "v1.2.3"``"""
    version: str

    @property
    def artifacts(self) -> Optional[List[str]]:
        return None


class ConfiguredExtension(BaseModel):
    """``"https://github.com/owner/repo" = { version = "v1.2.3", artifacts = ["abc0"] }``"""
    version: Optional[str] = None
    artifacts: Optional[List[str]] = None


ExtensionDefinition = Union[ConfiguredExtension, PinnedVersion]


def parse_definition(value: Any) -> ExtensionDefinition:
    """Decode one spm.toml extension value.

    Tables always decode as ConfiguredExtension, strings as PinnedVersion.
    """
    if isinstance(value, (ConfiguredExtension, PinnedVersion)):
        return value
    if isinstance(value, dict):
        return ConfiguredExtension.model_validate(value)
    if isinstance(value, str):
        return PinnedVersion(version=value)
    raise ValueError(
        f"extension definition must be a version string or a table, got {type(value).__name__}"
    )


class PackageManifest(BaseModel):
    """spm.toml, the user-authored project manifest."""
    description: Optional[str] = None
    preload_directories: Optional[List[str]] = Field(
        default=None, **_camel("preloadDirectories", "preload_directories")
    )
    extensions: Dict[str, ExtensionDefinition]

    @field_validator("extensions", mode="before")
    @classmethod
    def _decode_definitions(cls, value: Any) -> Dict[str, ExtensionDefinition]:
        if not isinstance(value, dict):
            raise ValueError("extensions must be a table")
        return {name: parse_definition(definition) for name, definition in value.items()}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for TOML serialization."""
        data: Dict[str, Any] = {}
        if self.description is not None:
            data["description"] = self.description
        if self.preload_directories is not None:
            data["preloadDirectories"] = list(self.preload_directories)

        extensions: Dict[str, Any] = {}
        for name, definition in self.extensions.items():
            if isinstance(definition, PinnedVersion):
                extensions[name] = definition.version
            else:
                extensions[name] = definition.model_dump(exclude_none=True)
        data["extensions"] = extensions
        return data


class LockEntry(BaseModel):
    """A fully resolved extension in spm.lock."""
    version: str
    artifacts: Optional[List[str]] = None
    resolved_url: str = Field(**_camel("resolvedUrl", "resolved_url"))
    resolved_spm_json: str = Field(**_camel("resolvedSpmJson", "resolved_spm_json"))
    integrity: str = ""
    spm_json: PackageReleaseManifest = Field(**_camel("spmJson", "spm_json"))


class LockDocument(BaseModel):
    """spm.lock, serialized as JSON."""
    version: int = 0
    extensions: Dict[str, LockEntry] = Field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON wire layout."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LockDocument":
        """Create from the JSON wire layout."""
        return cls.model_validate(data)
