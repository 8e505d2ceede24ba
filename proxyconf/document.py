"""Configuration document: comment-preserving, path-addressed YAML store.

Keys are addressed with dot-separated paths (``advanced.server-brand``).
The round-trip loader keeps user comments, key order and quoting intact,
so a file that goes through load, migrate and save only changes where a
migration wrote something.
"""

from __future__ import annotations

import contextlib
import copy
import io
import logging
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError
from ruamel.yaml.tokens import CommentToken

from proxyconf.exceptions import (
    DocumentError,
    DocumentLoadError,
    DocumentWriteError,
    PersistError,
    VersionReadError,
)

_logger = logging.getLogger(__name__)

VERSION_KEY = "config-version"
_INDENT = 2


def _yaml() -> YAML:
    yaml_rt = YAML(typ="rt")
    yaml_rt.preserve_quotes = True
    yaml_rt.default_flow_style = False
    yaml_rt.indent(mapping=_INDENT, sequence=_INDENT * 2, offset=_INDENT)
    return yaml_rt


def parse_version(value: Any) -> Decimal:
    """Parse a config-version marker. A missing marker is version 0."""
    if value is None:
        return Decimal(0)
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise VersionReadError(
            f"{VERSION_KEY} must be a number, got {type(value).__name__}"
        )
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise VersionReadError(f"{VERSION_KEY} is not a number: {value!r}") from e
    if not parsed.is_finite():
        raise VersionReadError(f"{VERSION_KEY} is not a finite number: {value!r}")
    return parsed


def format_version(version: Decimal) -> str:
    return str(version)


def _split_path(path: str) -> list[str]:
    if not path:
        raise ValueError("Path cannot be empty")
    keys = path.split(".")
    for key in keys:
        if not key:
            raise ValueError(f"Invalid path '{path}': contains empty segment")
    return keys


def _comment_text(lines: list[str]) -> str | None:
    # Blank lines split comment blocks; the last block sits above the key
    blocks: list[list[str]] = [[]]
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("#"):
            blocks[-1].append(stripped[1:].removeprefix(" "))
        elif blocks[-1]:
            blocks.append([])
    for block in reversed(blocks):
        if block:
            return "\n".join(block)
    return None


def _split_trailing(text: str, keep_first: bool) -> tuple[str, list[str]]:
    """Split off the comment lines at the end of `text`.

    Returns what stays and the trailing comment block. A blank line ends
    the block. With `keep_first` the first line is the rest of the previous
    key's line (an inline comment) and is never part of the block.
    """
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    floor = 1 if keep_first else 0
    block: list[str] = []
    while len(lines) > floor and lines[-1].strip().startswith("#"):
        block.insert(0, lines.pop())
    rest = "\n".join(lines) + "\n" if lines else ""
    return rest, block


def _trailing_comment(
    container: list, index: int, keep_first: bool, remove: bool = False
) -> list[str]:
    """Comment lines ruamel stored at `container[index]` just above the next key.

    The slot holds either a single end-of-line token or a list of
    full-line tokens. With `remove` the lines are cut out of the slot.
    """
    slot = container[index]
    if slot is None:
        return []

    if isinstance(slot, CommentToken):
        rest, block = _split_trailing(slot.value, keep_first)
        if block and remove:
            if rest.strip() or rest.count("\n") > 1:
                container[index] = CommentToken(rest, slot.start_mark, slot.end_mark)
            else:
                container[index] = None
        return block

    remaining = list(slot)
    block = []
    while remaining:
        tok = remaining[-1]
        if tok is None:
            remaining.pop()
            continue
        rest, part = _split_trailing(tok.value, False)
        block = part + block
        if rest or not part:
            if part:
                remaining[-1] = CommentToken(rest, tok.start_mark, tok.end_mark)
            break
        remaining.pop()
    if block and remove:
        container[index] = remaining
    return block


class ConfigDocument:
    """A mutable configuration tree with per-key comments and a version marker."""

    def __init__(self, data: CommentedMap | None = None) -> None:
        self._data = data if data is not None else CommentedMap()
        # (id(section), key) for keys this document created; nothing from
        # the file can sit above them
        self._created: set[tuple[int, str]] = set()

    # ── Loading ─────────────────────────────────────────────────

    @classmethod
    def loads(cls, text: str) -> ConfigDocument:
        try:
            data = _yaml().load(text)
        except YAMLError as e:
            raise DocumentLoadError(f"Invalid YAML: {e}") from e
        if data is None:
            return cls()
        if not isinstance(data, CommentedMap):
            raise DocumentLoadError(
                f"Configuration must be a YAML mapping, got {type(data).__name__}"
            )
        return cls(data)

    @classmethod
    def load(cls, path: Path | str) -> ConfigDocument:
        """Load a document from disk. A missing file loads as an empty document."""
        path = Path(path)
        if not path.exists():
            _logger.info("No configuration at %s, starting from defaults", path)
            return cls()
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise DocumentLoadError(f"Cannot read {path}: {e}") from e
        try:
            return cls.loads(text)
        except DocumentLoadError as e:
            raise DocumentLoadError(f"{path}: {e}") from e

    # ── Values ──────────────────────────────────────────────────

    def get(self, path: str, default: Any = None) -> Any:
        try:
            keys = _split_path(path)
        except ValueError as e:
            raise DocumentError(str(e)) from e
        node: Any = self._data
        for key in keys:
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def contains(self, path: str) -> bool:
        sentinel = object()
        return self.get(path, sentinel) is not sentinel

    def set(self, path: str, value: Any) -> None:
        """Set a value, creating intermediate sections as needed."""
        try:
            keys = _split_path(path)
        except ValueError as e:
            raise DocumentWriteError(str(e)) from e

        node = self._data
        for key in keys[:-1]:
            if key not in node:
                node[key] = CommentedMap()
                self._created.add((id(node), key))
            elif node[key] is None:
                # A section whose lines are all commented out loads as null
                node[key] = CommentedMap()
            elif not isinstance(node[key], dict):
                raise DocumentWriteError(
                    f"Cannot set '{path}': '{key}' is "
                    f"{type(node[key]).__name__}, not a section"
                )
            node = node[key]
        if keys[-1] not in node:
            self._created.add((id(node), keys[-1]))
        node[keys[-1]] = value

    # ── Comments ────────────────────────────────────────────────

    def _locate(
        self, path: str, error: type[DocumentError] = DocumentWriteError
    ) -> tuple[CommentedMap, str, int]:
        try:
            keys = _split_path(path)
        except ValueError as e:
            raise error(str(e)) from e
        parent = self.get(".".join(keys[:-1])) if len(keys) > 1 else self._data
        if not isinstance(parent, CommentedMap) or keys[-1] not in parent:
            raise error(f"Cannot comment '{path}': key does not exist")
        return parent, keys[-1], _INDENT * (len(keys) - 1)

    def _carriers(self, path: str) -> list[tuple[list, int, bool]]:
        """Slots where a loaded file keeps the comment block above `path`.

        ruamel hangs full-line comments off whatever precedes them: the
        previous sibling's line (its last leaf when it is a section), or for
        a first key the section header.
        """
        keys = _split_path(path)
        chain = [self._data]
        for key in keys[:-1]:
            chain.append(chain[-1][key])
        parent = chain[-1]
        siblings = list(parent.keys())
        index = siblings.index(keys[-1])

        carriers: list[tuple[list, int, bool]] = []
        if index > 0:
            node, key = parent, siblings[index - 1]
            while isinstance(node[key], CommentedMap) and len(node[key]):
                node, key = node[key], list(node[key].keys())[-1]
            entry = node.ca.items.get(key)
            if entry is not None and len(entry) > 2:
                carriers.append((entry, 2, True))
            return carriers

        if parent.ca.comment and len(parent.ca.comment) > 1:
            carriers.append((parent.ca.comment, 1, False))
        if len(chain) > 1:
            entry = chain[-2].ca.items.get(keys[-2])
            if entry is not None and len(entry) > 2:
                carriers.append((entry, 2, True))
            if entry is not None and len(entry) > 3:
                carriers.append((entry, 3, False))
        return carriers

    def set_comment(self, path: str, text: str) -> None:
        """Attach a comment above a key, replacing the one already there."""
        parent, key, indent = self._locate(path)
        if (id(parent), key) not in self._created:
            for container, index, keep_first in self._carriers(path):
                if _trailing_comment(container, index, keep_first, remove=True):
                    break
        entry = parent.ca.items.get(key)
        if entry is not None and len(entry) > 1:
            entry[1] = []
        parent.yaml_set_comment_before_after_key(key, before=text, indent=indent)

    def get_comment(self, path: str) -> str | None:
        parent, key, _ = self._locate(path, DocumentError)

        entry = parent.ca.items.get(key)
        if entry is not None and len(entry) > 1 and entry[1]:
            return _comment_text([tok.value for tok in entry[1] if tok is not None])
        if (id(parent), key) in self._created:
            return None

        for container, index, keep_first in self._carriers(path):
            block = _trailing_comment(container, index, keep_first)
            if block:
                return _comment_text(block)
        return None

    # ── Version marker ──────────────────────────────────────────

    def get_version(self) -> Decimal:
        return parse_version(self._data.get(VERSION_KEY))

    def set_version(self, version: Decimal | str) -> None:
        self.set(VERSION_KEY, format_version(Decimal(version)))

    # ── Serialization ───────────────────────────────────────────

    def copy(self) -> ConfigDocument:
        memo: dict[int, Any] = {}
        clone = ConfigDocument(copy.deepcopy(self._data, memo))
        clone._created = {
            (id(memo[section]), key)
            for section, key in self._created
            if section in memo
        }
        return clone

    def to_dict(self) -> dict[str, Any]:
        """Plain nested dict of the current values (comments dropped)."""

        def _plain(node: Any) -> Any:
            if isinstance(node, dict):
                return {str(k): _plain(v) for k, v in node.items()}
            if isinstance(node, list):
                return [_plain(v) for v in node]
            return node

        return _plain(self._data)

    def dumps(self) -> str:
        stream = io.StringIO()
        _yaml().dump(self._data, stream)
        return stream.getvalue()

    def save(self, path: Path | str) -> None:
        """Atomically write the document: temp file in place, then rename."""
        path = Path(path)
        text = self.dumps()
        temp_path = Path(f"{path}.tmp.{os.getpid()}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(text, encoding="utf-8")
            if path.exists():
                os.chmod(temp_path, path.stat().st_mode & 0o777)
            os.replace(temp_path, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                temp_path.unlink()
            raise PersistError(f"Failed to write {path}: {e}") from e
        _logger.debug("Saved configuration to %s", path)
