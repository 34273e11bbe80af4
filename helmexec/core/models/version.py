"""
Semantic version model.

A Version is parsed once per facade construction and never changes. The
same model describes helm itself and companion tools such as plugins.
"""

from __future__ import annotations

import re
from typing import Annotated

from packaging.specifiers import SpecifierSet
from packaging.version import InvalidVersion
from packaging.version import Version as Pep440Version
from pydantic import Field

from .base import ImmutableModel

# Build metadata stops at the next "+", so "3.7.1+7.el8+g8f33223" keeps "7.el8"
SEMVER_PATTERN = (
    r"v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
)
SEMVER_RE = re.compile(SEMVER_PATTERN)
_STRICT_SEMVER_RE = re.compile(rf"^{SEMVER_PATTERN}$")

NonNegative = Annotated[int, Field(ge=0)]


class Version(ImmutableModel):
    """A semantic version (major.minor.patch with optional pre-release and build)."""

    major: NonNegative
    minor: NonNegative
    patch: NonNegative
    prerelease: str = ""
    build: str = ""

    @classmethod
    def parse(cls, text: str) -> Version:
        """
        Parse a complete semantic version string.

        Args:
            text: Version such as "3.7.0" or "v3.2.4+ge29ce2a"

        Returns:
            Parsed Version

        Raises:
            ValueError: If the text is not a semantic version
        """
        match = _STRICT_SEMVER_RE.match(text.strip())
        if not match:
            raise ValueError(f"invalid semantic version: {text!r}")
        return cls.from_match(match)

    @classmethod
    def from_match(cls, match: re.Match[str]) -> Version:
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=match.group("prerelease") or "",
            build=match.group("build") or "",
        )

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text

    def _comparable(self) -> Pep440Version:
        """Project onto PEP 440 for ordering; build metadata never affects precedence."""
        base = f"{self.major}.{self.minor}.{self.patch}"
        if not self.prerelease:
            return Pep440Version(base)
        try:
            return Pep440Version(f"{base}-{self.prerelease}")
        except InvalidVersion:
            # Unknown pre-release label: still sorts below the release
            return Pep440Version(f"{base}.dev0")

    def is_at_least(self, other: str | Version) -> bool:
        """Check whether this version is equal to or newer than ``other``."""
        if isinstance(other, str):
            other = Version.parse(other)
        return self._comparable() >= other._comparable()

    def satisfies(self, constraint: str) -> bool:
        """
        Check the version against a constraint such as ">= 3.7.0".

        Pre-release versions never satisfy a constraint that does not
        name a pre-release itself.
        """
        if self.prerelease:
            return False
        spec = SpecifierSet(constraint.replace(" ", ""))
        return spec.contains(self._comparable(), prereleases=False)
