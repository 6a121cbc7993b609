"""components.dev_log — Per-agent decision log.

A ring-buffer resource that records why each agent did what it did:
paths the dispatcher handed out, activity transitions, parking claims,
trips out of town.  The viewer's event feed and the tests read it.

Usage:
    log = world.res(DevLog)
    log.record(eid, "traffic", "path → graph", details={"nodes": 6})

Each entry is a dict:
    {"t": float, "eid": int, "name": str, "cat": str,
     "msg": str, "details": dict | None}

Categories in use: ``"traffic"``, ``"schedule"``, ``"parking"``,
``"town"``.
"""

from __future__ import annotations
from dataclasses import dataclass, field


@dataclass
class DevLog:
    """Ring-buffer of per-agent decisions."""

    entries: list[dict] = field(default_factory=list)
    max_entries: int = 500

    # ── Filters ──────────────────────────────────────────────────────
    # If non-empty, only entries whose ``cat`` is in the set are kept.
    cat_filter: set[str] = field(default_factory=set)
    # If non-empty, only entries whose ``eid`` is in the set are kept.
    eid_filter: set[int] = field(default_factory=set)

    def record(self, eid: int, cat: str, msg: str, *,
               name: str = "", t: float = 0.0,
               details: dict | None = None) -> None:
        if self.cat_filter and cat not in self.cat_filter:
            return
        if self.eid_filter and eid not in self.eid_filter:
            return
        self.entries.append({
            "t": t,
            "eid": eid,
            "name": name,
            "cat": cat,
            "msg": msg,
            "details": details,
        })
        if len(self.entries) > self.max_entries:
            del self.entries[:len(self.entries) - self.max_entries]

    def clear(self):
        self.entries.clear()

    def recent(self, n: int = 50) -> list[dict]:
        """Return the *n* most recent entries (newest last)."""
        return self.entries[-n:]

    def for_eid(self, eid: int, n: int = 30) -> list[dict]:
        return [e for e in self.entries if e["eid"] == eid][-n:]

    def for_cat(self, cat: str, n: int = 50) -> list[dict]:
        return [e for e in self.entries if e["cat"] == cat][-n:]

    def count(self, cat: str, contains: str = "") -> int:
        """Number of entries in *cat* whose message contains *contains*."""
        return sum(1 for e in self.entries
                   if e["cat"] == cat and contains in e["msg"])
