"""File set primitives: file references, glob and download.

A *file set* maps a normalized relative POSIX path (no leading slash, no
``..`` segment) to a file reference. Every stage of the builder speaks in file
sets: the uploaded source tree, the build output and the inputs of each
lambda.

Guards mirror the archive extraction rules:
- No absolute keys
- No ``..`` traversal
- Materialized targets must stay inside the destination root
"""

from __future__ import annotations

import os
import re
import stat
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, Union

from next_builder.errors import UnsafePathError

DEFAULT_MODE = 0o100644


@dataclass(frozen=True)
class FileFsRef:
    """A file that already exists on disk."""

    fs_path: Path
    mode: int = DEFAULT_MODE

    @classmethod
    def from_path(cls, path: Path) -> FileFsRef:
        return cls(fs_path=Path(path), mode=os.stat(path).st_mode)

    def read_bytes(self) -> bytes:
        return self.fs_path.read_bytes()


@dataclass(frozen=True)
class FileBlob:
    """In-memory file contents (rendered launchers, generated manifests)."""

    data: bytes
    mode: int = DEFAULT_MODE

    def read_bytes(self) -> bytes:
        return self.data


FileRef = Union[FileFsRef, FileBlob]
FileSet = dict[str, FileRef]

_WILDCARDS = set("*?[")


def normalize_key(key: str) -> str:
    """Return *key* as a safe relative POSIX path or raise UnsafePathError."""
    raw = key.replace("\\", "/")
    if raw.startswith("/"):
        raise UnsafePathError(f"Absolute path in file set: {key}")
    parts = [p for p in PurePosixPath(raw).parts if p not in {"", "."}]
    if not parts or ".." in parts:
        raise UnsafePathError(f"Unsafe path in file set: {key}")
    return "/".join(parts)


def _is_within(base: Path, target: Path) -> bool:
    try:
        target.relative_to(base)
        return True
    except ValueError:
        return False


def _pattern_to_regex(pattern: str) -> re.Pattern[str]:
    out: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out) + r"\Z")


def _literal_prefix(pattern: str) -> str:
    prefix: list[str] = []
    for segment in pattern.split("/")[:-1]:
        if _WILDCARDS & set(segment):
            break
        prefix.append(segment)
    return "/".join(prefix)


def glob(pattern: str, root: Path) -> FileSet:
    """Return the regular files under *root* matching *pattern*.

    Keys are relative to *root*. ``**`` crosses directory boundaries, ``*`` and
    ``?`` do not. Only the literal leading directories of the pattern are
    walked, so ``node_modules/**`` never visits the rest of the tree.
    """
    root = Path(root)
    pattern = pattern.replace("\\", "/").lstrip("/")
    found: FileSet = {}
    if not _WILDCARDS & set(pattern):
        target = root / pattern
        if target.is_file():
            found[pattern] = FileFsRef.from_path(target)
        return found

    matcher = _pattern_to_regex(pattern)
    start = root / _literal_prefix(pattern)
    if not start.is_dir():
        return found
    for dirpath, dirnames, filenames in os.walk(start):
        dirnames.sort()
        for filename in sorted(filenames):
            full = Path(dirpath) / filename
            rel = full.relative_to(root).as_posix()
            if not matcher.match(rel):
                continue
            try:
                st = os.stat(full)
            except FileNotFoundError:
                # dangling symlink
                continue
            if stat.S_ISREG(st.st_mode):
                found[rel] = FileFsRef(fs_path=full, mode=st.st_mode)
    return found


def download(files: FileSet, dest: Path) -> FileSet:
    """Materialize *files* under *dest* and return on-disk references to them."""
    dest = Path(dest)
    dest.mkdir(parents=True, exist_ok=True)
    base = dest.resolve()

    materialized: FileSet = {}
    for key, ref in files.items():
        rel = normalize_key(key)
        target = dest / rel
        if not _is_within(base, target.resolve()):
            raise UnsafePathError(f"File escapes destination: {key}")
        if isinstance(ref, FileFsRef) and ref.fs_path.resolve() == target.resolve():
            materialized[rel] = ref
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(ref.read_bytes())
        os.chmod(target, stat.S_IMODE(ref.mode) & ~stat.S_ISUID & ~stat.S_ISGID)
        materialized[rel] = FileFsRef(fs_path=target, mode=ref.mode)
    return materialized


def exclude_files(files: FileSet, matcher: Callable[[str], bool]) -> FileSet:
    return {key: ref for key, ref in files.items() if not matcher(key)}


def include_only_entry_directory(files: FileSet, entry_directory: str) -> FileSet:
    """Keep the keys under *entry_directory* ("" or "." keeps everything)."""
    if entry_directory in {"", "."}:
        return dict(files)
    prefix = entry_directory.rstrip("/") + "/"
    return {key: ref for key, ref in files.items() if key.startswith(prefix)}


def only_static_directory(files: FileSet, entry_directory: str) -> FileSet:
    """Keep the keys under the project's ``static/`` directory."""
    prefix = "static/" if entry_directory in {"", "."} else f"{entry_directory.rstrip('/')}/static/"
    return {key: ref for key, ref in files.items() if key.startswith(prefix)}
