"""Typed configuration loading and access.

The optional ``relkit.toml`` file at the repository root tunes workflow
names, the release asset checklist and the coverage gate. Every key has a
default, so a repository without the file behaves exactly like one with an
empty file.

Example:
    [ci]
    workflow = "CI"
    release_workflow = "Release"

    [release]
    expected_assets = ["darwin-amd64", "linux-amd64", "checksums.txt"]

    [coverage]
    profile = "coverage.out"
    threshold = 85
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_float, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_EXPECTED_ASSETS",
    "DEFAULT_RELEASE_WORKFLOW",
    "DEFAULT_COVERAGE_THRESHOLD",
    "CiConfig",
    "Config",
    "ConfigError",
    "CoverageConfig",
    "ReleaseConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "relkit.toml"

# Must match what the release pipeline publishes. The real asset names embed
# the version and extension, so each entry is matched as a substring.
DEFAULT_EXPECTED_ASSETS: tuple[str, ...] = (
    "darwin-amd64",
    "darwin-arm64",
    "linux-amd64",
    "linux-arm64",
    "windows-amd64",
    "windows-arm64",
    "checksums.txt",
)

DEFAULT_RELEASE_WORKFLOW = "Release"
DEFAULT_COVERAGE_PROFILE = "coverage.out"
DEFAULT_COVERAGE_THRESHOLD = 80.0


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class CiConfig:
    """Which runs the monitors look at.

    ``workflow`` and ``branch`` narrow ``wait-ci`` discovery; unset means
    "most recent run of any workflow".
    """

    workflow: str | None = None
    branch: str | None = None
    release_workflow: str = DEFAULT_RELEASE_WORKFLOW


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    expected_assets: tuple[str, ...] = DEFAULT_EXPECTED_ASSETS


@dataclass(frozen=True, slots=True)
class CoverageConfig:
    profile: str = DEFAULT_COVERAGE_PROFILE
    threshold: float = DEFAULT_COVERAGE_THRESHOLD
    source_suffix: str = ".go"
    exclude_suffixes: tuple[str, ...] = ("_test.go",)


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    ci: CiConfig = field(default_factory=CiConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    coverage: CoverageConfig = field(default_factory=CoverageConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        ci: StrDict = get_table(data, "ci") or {}
        release: StrDict = get_table(data, "release") or {}
        coverage: StrDict = get_table(data, "coverage") or {}

        assets = get_str_list(release, "expected_assets")
        excludes = get_str_list(coverage, "exclude_suffixes")
        threshold = get_float(coverage, "threshold")
        if threshold is not None and not 0 <= threshold <= 100:
            raise ValueError(f"coverage.threshold must be within 0..100, got {threshold}")

        return cls(
            ci=CiConfig(
                workflow=get_str(ci, "workflow"),
                branch=get_str(ci, "branch"),
                release_workflow=get_str(ci, "release_workflow") or DEFAULT_RELEASE_WORKFLOW,
            ),
            release=ReleaseConfig(
                expected_assets=tuple(assets) if assets else DEFAULT_EXPECTED_ASSETS,
            ),
            coverage=CoverageConfig(
                profile=get_str(coverage, "profile") or DEFAULT_COVERAGE_PROFILE,
                threshold=DEFAULT_COVERAGE_THRESHOLD if threshold is None else threshold,
                source_suffix=get_str(coverage, "source_suffix") or ".go",
                exclude_suffixes=tuple(excludes) if excludes is not None else ("_test.go",),
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to relkit.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config if the file exists, otherwise return the defaults.

    A file that exists but does not parse is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
