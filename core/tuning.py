"""core/tuning.py — Data-driven tuning constants.

All navigation and behaviour numbers live in ``data/tuning.toml`` and
are loaded once at startup.  Any system can read a value with::

    from core.tuning import get
    eps = get("kinematics.vehicle", "arrive_distance", 3.0)

Every call site passes its own default, so a missing file (or a missing
key) silently falls back to the hard-coded value.

``override()`` patches a single value in memory; the gate heuristic
and the behaviour probabilities are tuned against one map and callers
are expected to adjust them.  ``reload()`` re-reads the file and drops
all overrides.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any

try:
    import tomllib                         # Python 3.11+
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib


_data: dict = {}
_path: Path | None = None


def load(path: str | Path | None = None) -> None:
    """Load (or reload) tuning constants from *path*.

    If *path* is ``None``, default to ``data/tuning.toml`` relative to
    the project root (one level above ``core/``).
    """
    global _data, _path

    if path is None:
        root = Path(__file__).resolve().parent.parent
        path = root / "data" / "tuning.toml"
    else:
        path = Path(path)

    _path = path

    if not path.exists():
        print(f"[TUNING] {path} not found, using defaults")
        _data = {}
        return

    with open(path, "rb") as f:
        _data = tomllib.load(f)

    count = _count_leaves(_data)
    print(f"[TUNING] Loaded {count} values from {path}")


def reload() -> None:
    """Re-read the tuning file from disk, discarding overrides."""
    load(_path)


def get(section: str, key: str, default=None):
    """Read a tuning value.

    *section* uses dot-notation to traverse nested tables, e.g.
    ``"nav.gates"`` looks up ``[nav.gates]``.

    >>> get("nav.gates", "short_edge_ratio", 0.8)
    0.8
    """
    node = _walk(section)
    if isinstance(node, dict):
        return node.get(key, default)
    return default


def section(section_path: str) -> dict:
    """Return an entire section dict (shallow copy), or empty dict."""
    node = _walk(section_path)
    if isinstance(node, dict):
        return dict(node)
    return {}


def override(section_path: str, key: str, value: Any) -> None:
    """Set ``[section_path].key`` in memory, creating tables as needed."""
    node = _data
    for part in section_path.split("."):
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[key] = value


def _walk(section_path: str):
    node: Any = _data
    for part in section_path.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
        if node is None:
            return None
    return node


def _count_leaves(d: dict, _n: int = 0) -> int:
    for v in d.values():
        if isinstance(v, dict):
            _n = _count_leaves(v, _n)
        else:
            _n += 1
    return _n
