# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Just enough semver for an npm workspace.

workspacekit never resolves dependency trees; npm does that. It needs
three things from semver:

- :func:`satisfies`: does the copy of a dev dependency already hoisted
  into the workspace root satisfy a package's declared range?
- :func:`increment` / :func:`apply_version_bump`: the publish-time
  version bump (``major`` ... ``prerelease`` or a literal version).
- :func:`to_semver_range`: widen ``^1.2.3`` to ``^1.x.x`` and ``~1.2.3``
  to ``~1.2.x`` before handing specs to ``npm install``.

Supported range grammar::

    range      ::= set ( '||' set )*
    set        ::= hyphen | simple ( ' ' simple )*
    hyphen     ::= partial ' - ' partial
    simple     ::= ( '<' | '<=' | '>' | '>=' | '=' | '~' | '^' )? partial
    partial    ::= ( 'x' | '*' | NR ) ( '.' ( 'x' | '*' | NR ) ( '.' ( 'x' | '*' | NR ) pre? )? )?

Prerelease versions follow npm: ``1.3.0-beta.1`` only satisfies a set
that names a prerelease on the same ``1.3.0`` tuple.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from enum import Enum

from workspacekit.errors import E, WorkspaceKitError


class VersionBump(str, Enum):
    """Kinds of version increments accepted by the publish stage."""

    MAJOR = 'major'
    PREMAJOR = 'premajor'
    MINOR = 'minor'
    PREMINOR = 'preminor'
    PATCH = 'patch'
    PREPATCH = 'prepatch'
    PRERELEASE = 'prerelease'


_VERSION_RE = re.compile(
    r'^\s*[=v]*(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?(?:\+[0-9A-Za-z.-]+)?\s*$',
)
_PARTIAL_RE = re.compile(
    r'^[=v]*(\d+|[xX*])(?:\.(\d+|[xX*]))?(?:\.(\d+|[xX*]))?'
    r'(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?(?:\+[0-9A-Za-z.-]+)?$',
)
_SIMPLE_RE = re.compile(r'^(<=|>=|<|>|=|~>?|\^)?\s*(.*)$')
_HYPHEN_RE = re.compile(r'^\s*(\S+)\s+-\s+(\S+)\s*$')
_RANGE_PREFIX_RE = re.compile(r'^(\^|~)?(?:(\d+)\.?)(?:(\d+)\.?)?(?:(\d+)\.?)?')


def _identifier(part: str) -> int | str:
    return int(part) if part.isdigit() else part


@functools.total_ordering
@dataclass(frozen=True)
class Version:
    """A parsed ``MAJOR.MINOR.PATCH[-PRERELEASE]`` version. Build metadata is dropped."""

    major: int
    minor: int
    patch: int
    prerelease: tuple[int | str, ...] = ()

    def __str__(self) -> str:
        """Return the canonical version string."""
        base = f'{self.major}.{self.minor}.{self.patch}'
        if self.prerelease:
            return base + '-' + '.'.join(str(p) for p in self.prerelease)
        return base

    @property
    def release(self) -> tuple[int, int, int]:
        """The ``(major, minor, patch)`` tuple."""
        return (self.major, self.minor, self.patch)

    def _key(self) -> tuple[object, ...]:
        if not self.prerelease:
            return (*self.release, 1, ())
        # Numeric identifiers sort before alphanumeric ones.
        pre = tuple((0, p, '') if isinstance(p, int) else (1, 0, p) for p in self.prerelease)
        return (*self.release, 0, pre)

    def __lt__(self, other: object) -> bool:
        """Compare by semver precedence."""
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()


def parse_version(text: str) -> Version:
    """Parse a full version string.

    Raises:
        WorkspaceKitError: If ``text`` is not a valid version.
    """
    match = _VERSION_RE.match(text)
    if not match:
        raise WorkspaceKitError(
            code=E.VERSION_INVALID,
            message=f'Version {text!r} is not valid (expected X.Y.Z)',
            hint='Use a version string like "1.2.3" or "1.2.3-beta.1".',
        )
    major, minor, patch, pre = match.groups()
    prerelease = tuple(_identifier(p) for p in pre.split('.')) if pre else ()
    return Version(int(major), int(minor), int(patch), prerelease)


def valid(text: str) -> str | None:
    """Return the canonical form of ``text``, or ``None`` if it is not a version."""
    try:
        return str(parse_version(text))
    except WorkspaceKitError:
        return None


def increment(version: str, bump: VersionBump | str, identifier: str = '') -> str:
    """Increment ``version`` the way ``npm version <bump>`` does.

    Args:
        version: The current version.
        bump: One of :class:`VersionBump`.
        identifier: Optional prerelease identifier (``beta`` gives
            ``1.2.4-beta.0`` for a ``prepatch``).

    Raises:
        WorkspaceKitError: If ``version`` or ``bump`` is not valid.
    """
    current = parse_version(version)
    try:
        kind = VersionBump(bump)
    except ValueError as exc:
        raise WorkspaceKitError(
            code=E.VERSION_INVALID,
            message=f'Unknown version bump {bump!r}',
            hint=f'Use one of: {", ".join(b.value for b in VersionBump)}.',
        ) from exc

    major, minor, patch = current.release
    pre = current.prerelease
    first_pre: tuple[int | str, ...] = (identifier, 0) if identifier else (0,)

    if kind is VersionBump.MAJOR:
        if pre and minor == 0 and patch == 0:
            return str(Version(major, 0, 0))
        return str(Version(major + 1, 0, 0))
    if kind is VersionBump.MINOR:
        if pre and patch == 0:
            return str(Version(major, minor, 0))
        return str(Version(major, minor + 1, 0))
    if kind is VersionBump.PATCH:
        if pre:
            return str(Version(major, minor, patch))
        return str(Version(major, minor, patch + 1))
    if kind is VersionBump.PREMAJOR:
        return str(Version(major + 1, 0, 0, first_pre))
    if kind is VersionBump.PREMINOR:
        return str(Version(major, minor + 1, 0, first_pre))
    if kind is VersionBump.PREPATCH:
        return str(Version(major, minor, patch + 1, first_pre))

    # prerelease
    if not pre:
        return str(Version(major, minor, patch + 1, first_pre))
    if identifier and pre[0] != identifier:
        return str(Version(major, minor, patch, first_pre))
    parts = list(pre)
    for index in range(len(parts) - 1, -1, -1):
        if isinstance(parts[index], int):
            parts[index] = int(parts[index]) + 1
            break
    else:
        parts.append(0)
    return str(Version(major, minor, patch, tuple(parts)))


def apply_version_bump(version: str, token: str) -> str:
    """Return the version ``token`` asks for.

    ``token`` is either a :class:`VersionBump` kind applied to
    ``version`` or a literal version that replaces it.

    Raises:
        WorkspaceKitError: If ``token`` is neither.
    """
    if token in {b.value for b in VersionBump}:
        return increment(version, token)
    literal = valid(token)
    if literal is None:
        raise WorkspaceKitError(
            code=E.VERSION_INVALID,
            message=f"'{token}' is not a valid version.",
            hint=f'Use one of: {", ".join(b.value for b in VersionBump)}, or a version like 1.2.3.',
        )
    return literal


def to_semver_range(version: str) -> str:
    """Widen a caret or tilde spec so npm picks the newest compatible release.

    Examples::

        ^1.2.3 → ^1.x.x
        ~1.2.3 → ~1.2.x
        ~1     → ~1.x.x
        1.2.3  → 1.2.3   (unchanged)
    """
    match = _RANGE_PREFIX_RE.match(version)
    if not match or not match.group(1):
        return version
    prefix, major, minor, _ = match.groups()
    if prefix == '^':
        return f'^{major}.x.x'
    return f'~{major}.{minor or "x"}.x'


# A comparator is (operator, bound, explicit). Explicit comparators are the
# ones written by the user; only they can admit prerelease versions.
_Comparator = tuple[str, Version, bool]


def _is_wild(part: str | None) -> bool:
    return part is None or part in {'x', 'X', '*'}


def _parse_partial(text: str) -> tuple[int | None, int | None, int | None, tuple[int | str, ...]] | None:
    if text in {'', '*', 'x', 'X'}:
        return (None, None, None, ())
    match = _PARTIAL_RE.match(text)
    if not match:
        return None
    major_s, minor_s, patch_s, pre = match.groups()
    major = None if _is_wild(major_s) else int(major_s)
    minor = None if major is None or _is_wild(minor_s) else int(minor_s)
    patch = None if minor is None or _is_wild(patch_s) else int(patch_s)
    prerelease = tuple(_identifier(p) for p in pre.split('.')) if pre and patch is not None else ()
    return (major, minor, patch, prerelease)


def _floor(major: int, minor: int, patch: int) -> Version:
    """Lowest possible version of a release tuple (``X.Y.Z-0``)."""
    return Version(major, minor, patch, (0,))


def _simple(operator: str, text: str) -> list[_Comparator] | None:
    parsed = _parse_partial(text)
    if parsed is None:
        return None
    major, minor, patch, pre = parsed

    if major is None:
        if operator in {'<', '>'}:
            # "<*" and ">*" match nothing.
            return [('<', Version(0, 0, 0, (0,)), False)]
        return []

    if operator in {'', '='}:
        if minor is None:
            return [('>=', Version(major, 0, 0), False), ('<', _floor(major + 1, 0, 0), False)]
        if patch is None:
            return [('>=', Version(major, minor, 0), False), ('<', _floor(major, minor + 1, 0), False)]
        return [('=', Version(major, minor, patch, pre), True)]

    if operator in {'~', '~>'}:
        low = Version(major, minor or 0, patch or 0, pre)
        if minor is None:
            return [('>=', low, True), ('<', _floor(major + 1, 0, 0), False)]
        return [('>=', low, True), ('<', _floor(major, minor + 1, 0), False)]

    if operator == '^':
        low = Version(major, minor or 0, patch or 0, pre)
        if major > 0 or minor is None:
            high = _floor(major + 1, 0, 0)
        elif minor > 0 or patch is None:
            high = _floor(0, minor + 1, 0)
        else:
            high = _floor(0, 0, patch + 1)
        return [('>=', low, True), ('<', high, False)]

    if operator == '>':
        if minor is None:
            return [('>=', Version(major + 1, 0, 0), False)]
        if patch is None:
            return [('>=', Version(major, minor + 1, 0), False)]
        return [('>', Version(major, minor, patch, pre), True)]

    if operator == '>=':
        return [('>=', Version(major, minor or 0, patch or 0, pre), True)]

    if operator == '<':
        if patch is None:
            return [('<', _floor(major, minor or 0, 0), False)]
        return [('<', Version(major, minor or 0, patch, pre), True)]

    # '<='
    if minor is None:
        return [('<', _floor(major + 1, 0, 0), False)]
    if patch is None:
        return [('<', _floor(major, minor + 1, 0), False)]
    return [('<=', Version(major, minor, patch, pre), True)]


def _hyphen(low_text: str, high_text: str) -> list[_Comparator] | None:
    low = _parse_partial(low_text)
    high = _parse_partial(high_text)
    if low is None or high is None:
        return None
    comparators: list[_Comparator] = []
    if low[0] is not None:
        comparators.append(('>=', Version(low[0], low[1] or 0, low[2] or 0, low[3]), True))
    h_major, h_minor, h_patch, h_pre = high
    if h_major is None:
        return comparators
    if h_minor is None:
        comparators.append(('<', _floor(h_major + 1, 0, 0), False))
    elif h_patch is None:
        comparators.append(('<', _floor(h_major, h_minor + 1, 0), False))
    else:
        comparators.append(('<=', Version(h_major, h_minor, h_patch, h_pre), True))
    return comparators


def _parse_set(text: str) -> list[_Comparator] | None:
    hyphen = _HYPHEN_RE.match(text)
    if hyphen:
        return _hyphen(hyphen.group(1), hyphen.group(2))

    # Allow "> 1.2.3" with a space after the operator.
    tokens = re.sub(r'(<=|>=|<|>|=|~>?|\^)\s+', r'\1', text.strip()).split()
    comparators: list[_Comparator] = []
    for token in tokens or ['*']:
        operator, rest = _SIMPLE_RE.match(token).groups()  # type: ignore[union-attr] - matches any string
        parsed = _simple(operator or '', rest)
        if parsed is None:
            return None
        comparators.extend(parsed)
    return comparators


def _test(version: Version, comparator: _Comparator) -> bool:
    operator, bound, _ = comparator
    if operator == '=':
        return version == bound
    if operator == '>':
        return version > bound
    if operator == '>=':
        return version >= bound
    if operator == '<':
        return version < bound
    return version <= bound


def _set_allows(version: Version, comparators: list[_Comparator]) -> bool:
    if not all(_test(version, c) for c in comparators):
        return False
    if not version.prerelease:
        return True
    return any(explicit and bound.prerelease and bound.release == version.release for _, bound, explicit in comparators)


def satisfies(version: str, spec: str) -> bool:
    """Return whether ``version`` falls inside the npm range ``spec``.

    Invalid versions and invalid ranges never satisfy anything.

    Examples::

        satisfies('1.4.0', '^1.2.0')        → True
        satisfies('2.0.0', '^1.2.0')        → False
        satisfies('1.2.9', '~1.2.3 || 3.x') → True
        satisfies('1.3.0-beta.1', '^1.2.0') → False
    """
    parsed = valid(version)
    if parsed is None:
        return False
    target = parse_version(parsed)
    for alternative in spec.split('||'):
        comparators = _parse_set(alternative)
        if comparators is not None and _set_allows(target, comparators):
            return True
    return False


__all__ = [
    'Version',
    'VersionBump',
    'apply_version_bump',
    'increment',
    'parse_version',
    'satisfies',
    'to_semver_range',
    'valid',
]
