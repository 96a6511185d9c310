"""Version file discovery, parsing and write-back.

A project's version lives in `version.json` (or the older single-line
`version.txt`) in the project directory or one of its ancestors; the
nearest file wins.

version.json:
    {
      "$schema": "...",
      "version": "1.2-beta",
      "release": {
        "branchName": "v{version}",
        "versionIncrement": "minor",
        "firstUnstableTag": "alpha"
      }
    }

version.txt:
    1.2          <- version (may already carry a prerelease)
    beta         <- optional prerelease tag, hyphen optional
"""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

from relprep.core.structured import StrDict, as_str_dict, get_str, get_table
from relprep.services.release.gateways import RepositoryGateway
from relprep.services.release.model import (
    DEFAULT_BRANCH_NAME,
    DEFAULT_FIRST_UNSTABLE_TAG,
    DEFAULT_VERSION_INCREMENT,
    ReleaseOptions,
    VersionOptions,
)
from relprep.services.release.semver import VersionIncrement, parse_version


VERSION_JSON = "version.json"
VERSION_TXT = "version.txt"
SCHEMA_URL = (
    "https://raw.githubusercontent.com/dotnet/Nerdbank.GitVersioning/main/"
    "src/NerdBank.GitVersioning/version.schema.json"
)

_INCREMENTS: dict[str, VersionIncrement] = {"major": "major", "minor": "minor", "build": "build"}


class VersionFiles:
    """Filesystem-backed version file gateway.

    Every load is a fresh read of the working tree, so after a checkout the
    next load sees the checked-out branch's file.
    """

    def find(self, directory: Path, *, stop_at: Path | None = None) -> Path | None:
        """Return the nearest version file at or above `directory`.

        The search never goes above `stop_at` when it is given.
        """
        start = directory.resolve()
        boundary = stop_at.resolve() if stop_at is not None else None
        for candidate_dir in (start, *start.parents):
            for name in (VERSION_JSON, VERSION_TXT):
                candidate = candidate_dir / name
                if candidate.is_file():
                    return candidate
            if boundary is not None and candidate_dir == boundary:
                break
        return None

    def load(self, directory: Path) -> VersionOptions | None:
        path = self.find(directory)
        return _read(path) if path is not None else None

    def load_from_repository(
        self, repository: RepositoryGateway, directory: Path
    ) -> VersionOptions | None:
        """Load the version governing `directory` on the checked-out branch."""
        path = self.find(directory, stop_at=repository.root)
        return _read(path) if path is not None else None

    def save(
        self, directory: Path, options: VersionOptions, *, include_schema_property: bool
    ) -> Path:
        """Write `options.version` back and return the path written.

        Writes to the file the options came from, else the nearest existing
        version file, else a new version.json in `directory`. Keys this
        module does not know about are preserved.
        """
        path = options.path or self.find(directory) or directory / VERSION_JSON
        if path.name == VERSION_TXT:
            path.write_text(f"{options.version}\n", encoding="utf-8")
            return path

        existing = _read_json_table(path) if path.exists() else None
        data: StrDict = {}
        if include_schema_property:
            data["$schema"] = SCHEMA_URL
        if existing is not None:
            data.update((k, v) for k, v in existing.items() if k not in data)
        data["version"] = str(options.version)
        if "release" not in data and not options.release.is_default:
            data["release"] = {
                "branchName": options.release.branch_name,
                "versionIncrement": options.release.version_increment,
                "firstUnstableTag": options.release.first_unstable_tag,
            }

        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        return path


def _read(path: Path) -> VersionOptions | None:
    if path.name == VERSION_TXT:
        return _read_txt(path)
    return _read_json(path)


def _read_json_table(path: Path) -> StrDict | None:
    try:
        data: object = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None
    return as_str_dict(data)


def _read_json(path: Path) -> VersionOptions | None:
    table = _read_json_table(path)
    if table is None:
        return None

    version_text = get_str(table, "version")
    version = parse_version(version_text) if version_text else None
    if version is None:
        return None

    release: StrDict = get_table(table, "release") or {}
    branch_name = _setting(release, "branchName", DEFAULT_BRANCH_NAME)
    increment_text = _setting(release, "versionIncrement", DEFAULT_VERSION_INCREMENT)
    first_unstable_tag = _setting(release, "firstUnstableTag", DEFAULT_FIRST_UNSTABLE_TAG)
    if branch_name is None or increment_text is None or first_unstable_tag is None:
        return None
    increment = _INCREMENTS.get(increment_text.lower())
    if increment is None:
        return None

    return VersionOptions(
        version=version,
        release=ReleaseOptions(
            branch_name=branch_name,
            version_increment=increment,
            first_unstable_tag=first_unstable_tag,
        ),
        path=path,
    )


def _setting(release: StrDict, key: str, default: str) -> str | None:
    """Return a release setting, or `default` when the key is absent or null.

    An explicit empty string is kept as is. A non-string value makes the
    file unreadable (None).
    """
    value = release.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        return None
    return value.strip()


def _read_txt(path: Path) -> VersionOptions | None:
    try:
        lines = [ln.strip() for ln in path.read_text(encoding="utf-8").splitlines()]
    except (OSError, UnicodeDecodeError):
        return None
    lines = [ln for ln in lines if ln]
    if not lines:
        return None

    version = parse_version(lines[0])
    if version is None:
        return None
    if len(lines) > 1:
        version = replace(version, prerelease=lines[1].removeprefix("-"))
    return VersionOptions(version=version, path=path)
