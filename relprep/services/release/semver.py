from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Literal


VersionIncrement = Literal["major", "minor", "build"]

_VERSION_RE = re.compile(
    r"^(?P<numbers>\d+(?:\.\d+){1,3})(?:-(?P<pre>[^+]+))?(?:\+(?P<meta>.+))?$"
)

_INCREMENT_INDEX: dict[str, int] = {"major": 0, "minor": 1, "build": 2}


@dataclass(frozen=True, slots=True)
class SemanticVersion:
    """A dotted numeric version with optional prerelease and build metadata.

    `prerelease` is stored without its leading hyphen ("beta.1", not
    "-beta.1"). Equality is exact; ordering ignores build metadata and ranks
    a prerelease below the same numeric version without one.
    """

    components: tuple[int, ...]
    prerelease: str = ""
    build_metadata: str = ""

    def __post_init__(self) -> None:
        if len(self.components) < 2:
            raise ValueError(f"version needs at least major.minor: {self.components!r}")

    @property
    def version_string(self) -> str:
        """Numeric components only, e.g. "1.2.3"."""
        return ".".join(str(c) for c in self.components)

    @property
    def prerelease_identifiers(self) -> tuple[str, ...]:
        if not self.prerelease:
            return ()
        return tuple(self.prerelease.split("."))

    def __str__(self) -> str:
        out = self.version_string
        if self.prerelease:
            out += f"-{self.prerelease}"
        if self.build_metadata:
            out += f"+{self.build_metadata}"
        return out

    def increment(self, kind: VersionIncrement) -> SemanticVersion:
        """Bump one numeric component and zero every component after it.

        Prerelease and build metadata are carried over. No component is
        added: "1.1" minor-bumps to "1.2", "1.2.3.4" to "1.3.0.0".

        Raises:
            ValueError: `build` on a version without a third component.
        """
        index = _INCREMENT_INDEX.get(kind)
        if index is None:
            raise AssertionError(f"unexpected increment kind: {kind}")
        if index >= len(self.components):
            raise ValueError(
                f"cannot apply '{kind}' increment to {self}: "
                f"it only has {len(self.components)} components"
            )
        head = self.components[:index]
        tail = (0,) * (len(self.components) - index - 1)
        return replace(self, components=(*head, self.components[index] + 1, *tail))

    def set_first_prerelease_tag(self, tag: str | None) -> SemanticVersion:
        """Replace the first prerelease identifier, keeping the others.

        A leading hyphen on `tag` is ignored. None or "" drops the whole
        prerelease, not just its first identifier.
        """
        first = (tag or "").removeprefix("-")
        if not first:
            return self.without_prerelease_tags()
        rest = self.prerelease_identifiers[1:]
        return replace(self, prerelease=".".join((first, *rest)))

    def without_prerelease_tags(self) -> SemanticVersion:
        return replace(self, prerelease="")

    def _precedence(self) -> tuple[tuple[int, ...], int, tuple[tuple[int, int, str], ...]]:
        if not self.prerelease:
            return (self.components, 1, ())
        return (self.components, 0, tuple(_identifier_key(i) for i in self.prerelease_identifiers))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._precedence() < other._precedence()

    def __le__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._precedence() <= other._precedence()

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._precedence() > other._precedence()

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._precedence() >= other._precedence()


def _identifier_key(identifier: str) -> tuple[int, int, str]:
    # Numeric identifiers sort numerically and before alphanumeric ones.
    if identifier.isdigit():
        return (0, int(identifier), "")
    return (1, 0, identifier)


def parse_version(text: str) -> SemanticVersion | None:
    """Parse "1.2", "1.2.3-beta.1", "1.2-alpha.{height}+meta" and the like.

    Accepts 2 to 4 numeric components. Returns None for anything else.
    """
    m = _VERSION_RE.match(text.strip())
    if m is None:
        return None
    prerelease = m.group("pre") or ""
    if prerelease and any(not part for part in prerelease.split(".")):
        return None
    components = tuple(int(p) for p in m.group("numbers").split("."))
    return SemanticVersion(components, prerelease, m.group("meta") or "")


def is_version_decrement(old: SemanticVersion, new: SemanticVersion) -> bool:
    """True when moving from `old` to `new` would go backwards.

    Only numeric components and the presence of a prerelease matter: a lower
    number is a decrement, and so is going from "1.2" to "1.2-beta". Going
    from "1.2-beta" to "1.2" is the normal stabilization step.
    """
    if new.components > old.components:
        return False
    if new.components == old.components:
        return not old.prerelease and bool(new.prerelease)
    return True
