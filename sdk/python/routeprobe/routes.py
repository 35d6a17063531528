"""Route file codec.

A route file is a list of ``[section]`` headers, each followed by one entry
per line and terminated by a blank line:

    [ip-add]
    *.example.com

    [ip-block]
    0.0.0.0

Section names are not interpreted here; ``ip-add`` and ``ip-block`` are only
conventions of the sandbox runtime.
"""

import os
from typing import Any, Iterable

from .types import RouteFileError


def _dedupe(entries: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(entries))


def _header(line: str) -> str | None:
    if len(line) >= 2 and line.startswith("[") and line.endswith("]"):
        return line[1:-1]
    return None


class RouteFile:
    """Ordered mapping of section name to unique entries."""

    def __init__(self, sections: dict[str, Iterable[str]] | None = None) -> None:
        self._sections: dict[str, list[str]] = {}
        for name, entries in (sections or {}).items():
            self.merge(name, entries)

    # ── Decode ───────────────────────────────────────────────────────

    @classmethod
    def loads(cls, text: str) -> "RouteFile":
        route_file = cls()
        section: str | None = None
        pending: list[str] = []

        for line in text.splitlines():
            name = _header(line)
            if name is not None:
                if section is not None:
                    route_file.merge(section, pending)
                section = name
                pending = []
            elif line:
                pending.append(line)

        if section is not None:
            route_file.merge(section, pending)
        return route_file

    @classmethod
    def load(cls, path: str | os.PathLike[str]) -> "RouteFile":
        """Read a route file; a missing file reads as empty.

        Raises:
            RouteFileError: the file exists but cannot be read.
        """
        try:
            with open(path, encoding="utf-8") as f:
                text = f.read()
        except FileNotFoundError:
            return cls()
        except (OSError, UnicodeDecodeError) as e:
            raise RouteFileError(path, f"failed to read route file: {e}") from e
        return cls.loads(text)

    # ── Encode ───────────────────────────────────────────────────────

    def dumps(self) -> str:
        lines: list[str] = []
        for name, entries in self._sections.items():
            lines.append(f"[{name}]")
            lines.extend(entries)
            lines.append("")
        return "".join(line + "\n" for line in lines)

    def dump(self, path: str | os.PathLike[str]) -> None:
        """Rewrite ``path`` with the complete route file."""
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as f:
                f.write(self.dumps())
        except OSError as e:
            raise RouteFileError(path, f"failed to write route file: {e}") from e

    # ── Mutation ─────────────────────────────────────────────────────

    def merge(self, section: str, candidates: Iterable[str]) -> "RouteFile":
        """Union ``candidates`` into ``section``, keeping first occurrences."""
        existing = self._sections.get(section, [])
        self._sections[section] = _dedupe([*existing, *candidates])
        return self

    # ── Access ───────────────────────────────────────────────────────

    def sections(self) -> list[str]:
        return list(self._sections)

    def entries(self, section: str) -> list[str]:
        return list(self._sections.get(section, []))

    def to_dict(self) -> dict[str, list[str]]:
        return {name: list(entries) for name, entries in self._sections.items()}

    def __contains__(self, section: object) -> bool:
        return section in self._sections

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, RouteFile):
            return NotImplemented
        if set(self._sections) != set(other._sections):
            return False
        return all(
            set(entries) == set(other._sections[name])
            for name, entries in self._sections.items()
        )

    def __repr__(self) -> str:
        return f"RouteFile({self._sections!r})"
