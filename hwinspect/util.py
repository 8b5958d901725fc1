"""Small helpers shared by the information collectors."""

from __future__ import annotations

from typing import Optional

from hwinspect.option import Alerter, env_or_default_alerter

UNKNOWN = "unknown"


def safe_int_from_file(path: str, alerter: Optional[Alerter] = None) -> int:
    """Read an integer from ``path``; warn and return -1 on any failure."""
    if alerter is None:
        alerter = env_or_default_alerter()
    msg = "failed to read int from file: %s"
    try:
        with open(path, encoding="utf-8") as handle:
            contents = handle.read().strip()
    except OSError as err:
        alerter.warning(msg, err)
        return -1
    try:
        return int(contents)
    except ValueError as err:
        alerter.warning(msg, err)
        return -1


def concat_strings(*args: str) -> str:
    """Concatenate the given strings with no separator."""
    return "".join(args)