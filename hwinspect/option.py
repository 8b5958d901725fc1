"""Optional settings that control where and how hardware information is read."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Optional, Protocol

DEFAULT_CHROOT = "/"

_ENV_CHROOT = "HWINSPECT_CHROOT"
_ENV_DISABLE_WARNINGS = "HWINSPECT_DISABLE_WARNINGS"
_ENV_DISABLE_TOOLS = "HWINSPECT_DISABLE_TOOLS"
_ENV_SNAPSHOT_PATH = "HWINSPECT_SNAPSHOT_PATH"
_ENV_SNAPSHOT_ROOT = "HWINSPECT_SNAPSHOT_ROOT"
_ENV_SNAPSHOT_EXCLUSIVE = "HWINSPECT_SNAPSHOT_EXCLUSIVE"
_ENV_SNAPSHOT_PRESERVE = "HWINSPECT_SNAPSHOT_PRESERVE"


class Alerter(Protocol):
    """Receives warnings about undesirable but recoverable conditions."""

    def warning(self, msg: str, *args: Any) -> None:
        ...


class _StderrHandler(logging.Handler):
    """Writes each record to whatever sys.stderr is at the time of the call."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            sys.stderr.write(self.format(record) + "\n")
        except Exception:  # pragma: no cover - mirrors logging's own policy
            self.handleError(record)


def _make_alerter(name: str, handler: logging.Handler) -> logging.Logger:
    logger = logging.Logger(name, logging.WARNING)
    logger.addHandler(handler)
    return logger


NULL_ALERTER: logging.Logger = _make_alerter("hwinspect.null", logging.NullHandler())


def env_or_default_alerter() -> Alerter:
    """Return an alerter writing to stderr, or a silent one if warnings are disabled."""
    if _ENV_DISABLE_WARNINGS in os.environ:
        return NULL_ALERTER
    return _make_alerter("hwinspect.warnings", _StderrHandler())


def env_or_default_chroot() -> str:
    """Return the chroot from the environment, or "/" if unset."""
    return os.environ.get(_ENV_CHROOT, DEFAULT_CHROOT)


def env_or_default_snapshot_path() -> str:
    """Return the snapshot path from the environment, or "" (no snapshot)."""
    return os.environ.get(_ENV_SNAPSHOT_PATH, "")


def env_or_default_snapshot_root() -> str:
    """Return the snapshot unpack root from the environment, or "" (self-managed)."""
    return os.environ.get(_ENV_SNAPSHOT_ROOT, "")


def env_or_default_snapshot_exclusive() -> bool:
    """Return True if the snapshot-exclusive variable is set."""
    return _ENV_SNAPSHOT_EXCLUSIVE in os.environ


def env_or_default_snapshot_preserve() -> bool:
    """Return True if unpacked snapshots should be kept after use."""
    return _ENV_SNAPSHOT_PRESERVE in os.environ


def env_or_default_tools() -> bool:
    """Return False if external tools were disabled through the environment."""
    return _ENV_DISABLE_TOOLS not in os.environ


@dataclass
class SnapshotOptions:
    """How a snapshot is consumed.

    ``path`` names the snapshot archive; ``root`` the directory to unpack it
    into; ``exclusive`` unpacks only into an empty ``root``.
    """

    path: str = ""
    root: Optional[str] = None
    exclusive: bool = False


@dataclass
class Option:
    """Settings where ``None`` means "not set"."""

    chroot: Optional[str] = None
    snapshot: Optional[SnapshotOptions] = None
    alerter: Optional[Alerter] = None
    enable_tools: Optional[bool] = None
    path_overrides: Optional[dict[str, str]] = None
    context: Any = None


def with_chroot(directory: str) -> Option:
    """Override the root directory used to read system files."""
    return Option(chroot=directory)


def with_snapshot(opts: SnapshotOptions) -> Option:
    """Set snapshot-processing options."""
    return Option(snapshot=opts)


def with_alerter(alerter: Alerter) -> Option:
    """Set the target of warnings."""
    return Option(alerter=alerter)


def with_null_alerter() -> Option:
    """Silence all warnings."""
    return Option(alerter=NULL_ALERTER)


def with_disable_tools() -> Option:
    """Forbid calling external programs to learn about the hardware."""
    return Option(enable_tools=False)


def with_path_overrides(overrides: dict[str, str]) -> Option:
    """Supply path-specific overrides."""
    return Option(path_overrides=overrides)


def merge(*args: Option) -> Option:
    """Merge options, later ones winning, then fill unset fields with defaults."""
    merged = Option()
    for opt in args:
        if opt.chroot is not None:
            merged.chroot = opt.chroot
        if opt.snapshot is not None:
            merged.snapshot = opt.snapshot
        if opt.alerter is not None:
            merged.alerter = opt.alerter
        if opt.enable_tools is not None:
            merged.enable_tools = opt.enable_tools
        if opt.path_overrides is not None:
            merged.path_overrides = opt.path_overrides
        if opt.context is not None:
            merged.context = opt.context

    if merged.chroot is None:
        merged.chroot = env_or_default_chroot()
    if merged.alerter is None:
        merged.alerter = env_or_default_alerter()
    if merged.snapshot is None:
        merged.snapshot = SnapshotOptions(
            path=env_or_default_snapshot_path(),
            root=env_or_default_snapshot_root(),
            exclusive=env_or_default_snapshot_exclusive(),
        )
    if merged.enable_tools is None:
        merged.enable_tools = env_or_default_tools()
    return merged