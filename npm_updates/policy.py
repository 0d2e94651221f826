"""
Update policy: which packages get prerelease, release-only, greatest and
semver-ceiling treatment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, Tuple


class DiffCeiling(Enum):
    """Largest semver bump a replacement may make."""

    PATCH = ("patch",)
    MINOR = ("patch", "minor")
    MAJOR = ("patch", "minor", "major")

    @property
    def accepted(self) -> Tuple[str, ...]:
        return self.value


@dataclass(frozen=True)
class PolicyFlag:
    """A flag that applies to every package, to none, or to named packages only."""

    mode: str
    names: FrozenSet[str] = field(default_factory=frozenset)

    ALL_MODE = "all"
    NONE_MODE = "none"
    NAMES_MODE = "names"

    @classmethod
    def all(cls) -> "PolicyFlag":
        return cls(cls.ALL_MODE)

    @classmethod
    def none(cls) -> "PolicyFlag":
        return cls(cls.NONE_MODE)

    @classmethod
    def names_only(cls, names: Iterable[str]) -> "PolicyFlag":
        return cls(cls.NAMES_MODE, frozenset(names))

    @classmethod
    def parse(cls, value) -> "PolicyFlag":
        """Parse a CLI value: absent, bare, or a comma-separated name list.

        ``None``/``False`` mean the flag was not given, ``True`` or an empty
        string mean it was given without names.
        """
        if value is None or value is False:
            return cls.none()
        if value is True or value == "":
            return cls.all()
        if isinstance(value, str):
            return cls.names_only(name for name in value.split(",") if name)
        return cls.names_only(value)

    def applies_to(self, name: str) -> bool:
        if self.mode == self.ALL_MODE:
            return True
        if self.mode == self.NAMES_MODE:
            return name in self.names
        return False


@dataclass(frozen=True)
class PackagePolicy:
    """Policy projected onto a single package."""

    use_prerelease: bool = False
    use_release_only: bool = False
    use_greatest: bool = False
    diff_ceiling: DiffCeiling = DiffCeiling.MAJOR

    @property
    def accepted_diffs(self) -> Tuple[str, ...]:
        return self.diff_ceiling.accepted


@dataclass(frozen=True)
class Policy:
    """Global update policy resolved from command-line flags."""

    prerelease: PolicyFlag = field(default_factory=PolicyFlag.none)
    release_only: PolicyFlag = field(default_factory=PolicyFlag.none)
    greatest: PolicyFlag = field(default_factory=PolicyFlag.none)
    patch: PolicyFlag = field(default_factory=PolicyFlag.none)
    minor: PolicyFlag = field(default_factory=PolicyFlag.none)

    @classmethod
    def from_args(
        cls,
        prerelease=None,
        release=None,
        greatest=None,
        patch=None,
        minor=None,
    ) -> "Policy":
        return cls(
            prerelease=PolicyFlag.parse(prerelease),
            release_only=PolicyFlag.parse(release),
            greatest=PolicyFlag.parse(greatest),
            patch=PolicyFlag.parse(patch),
            minor=PolicyFlag.parse(minor),
        )

    def ceiling_for(self, name: str) -> DiffCeiling:
        # patch wins over minor when both name the same package
        if self.patch.applies_to(name):
            return DiffCeiling.PATCH
        if self.minor.applies_to(name):
            return DiffCeiling.MINOR
        return DiffCeiling.MAJOR

    def for_package(self, name: str) -> PackagePolicy:
        return PackagePolicy(
            use_prerelease=self.prerelease.applies_to(name),
            use_release_only=self.release_only.applies_to(name),
            use_greatest=self.greatest.applies_to(name),
            diff_ceiling=self.ceiling_for(name),
        )
