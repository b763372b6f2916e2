"""Field-level diffs between two snapshots"""

from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from fuelops.audit.snapshot import Snapshot

_MISSING = object()


def _same(a: Any, b: Any) -> bool:
    # True == 1 in Python but not in a snapshot
    return type(a) is type(b) and a == b


class FieldChange(NamedTuple):
    old: Any
    new: Any


def diff(old: Optional[Snapshot], new: Optional[Snapshot]) -> List[str]:
    """Ordered names of fields that changed between ``old`` and ``new``

    An absent ``old`` reports every field of ``new`` (CREATE, RESTORE), an
    absent ``new`` every field of ``old`` (DELETE). With both present only
    fields whose presence or value differ are reported, so a key missing on
    one side and explicitly None on the other counts as a change.
    """
    if old is None and new is None:
        return []
    if old is None:
        return list(new)
    if new is None:
        return list(old)

    changed = []
    for field in list(old) + [key for key in new if key not in old]:
        if not _same(old.get(field, _MISSING), new.get(field, _MISSING)):
            changed.append(field)
    return changed


def expand(old: Optional[Snapshot], new: Optional[Snapshot], field: str) -> FieldChange:
    """Before/after values of one field; missing sides read as None"""
    return FieldChange(
        old=(old or {}).get(field),
        new=(new or {}).get(field),
    )


def expand_all(
    old: Optional[Snapshot],
    new: Optional[Snapshot],
    fields: Optional[Iterable[str]] = None,
) -> Dict[str, FieldChange]:
    if fields is None:
        fields = diff(old, new)
    return {field: expand(old, new, field) for field in fields}
