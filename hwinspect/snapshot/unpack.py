"""Unpack gzip-compressed tar snapshots."""

from __future__ import annotations

import os
import shutil
import tarfile
import tempfile
from typing import BinaryIO

from hwinspect.option import env_or_default_snapshot_preserve

TARGET_ROOT_PREFIX = "hwinspect-snapshot-"

# Unpack into a caller-supplied directory only if that directory is empty.
OWN_TARGET_DIRECTORY = 1 << 0


def cleanup(target_root: str) -> None:
    """Remove an unpacked snapshot, unless preservation is requested by the environment."""
    if env_or_default_snapshot_preserve():
        return
    try:
        shutil.rmtree(target_root)
    except FileNotFoundError:
        pass


def unpack(snapshot_name: str) -> str:
    """Unpack ``snapshot_name`` into a new temporary directory and return its path."""
    target_root = tempfile.mkdtemp(prefix=TARGET_ROOT_PREFIX)
    unpack_into(snapshot_name, target_root, 0)
    return target_root


def unpack_into(snapshot_name: str, target_root: str, flags: int = 0) -> bool:
    """Unpack ``snapshot_name`` into ``target_root``; return whether it was unpacked."""
    if flags & OWN_TARGET_DIRECTORY and not _is_empty_dir(target_root):
        return False
    with open(snapshot_name, "rb") as snap:
        untar(target_root, snap)
    return True


def untar(root: str, reader: BinaryIO) -> None:
    """Extract the tar.gz stream ``reader`` into ``root``.

    Directories, regular files and symlinks are restored; other entries are ignored.
    """
    with tarfile.open(fileobj=reader, mode="r|gz") as archive:
        for member in archive:
            target = os.path.normpath(os.path.join(root, member.name))
            mode = member.mode & 0o7777
            if member.isdir():
                os.makedirs(target, mode=mode, exist_ok=True)
            elif member.isreg():
                source = archive.extractfile(member)
                fd = os.open(target, os.O_CREAT | os.O_RDWR, mode)
                with os.fdopen(fd, "wb") as dst:
                    if source is not None:
                        shutil.copyfileobj(source, dst)
            elif member.issym():
                os.symlink(member.linkname, target)


def _is_empty_dir(name: str) -> bool:
    try:
        return not os.listdir(name)
    except OSError:
        return False