"""Pairs declared instances with live ones."""

from collections.abc import Sequence

from rdsreconcile.models import DesiredInstance, LiveInstance, ReconciliationRecord


def match(
    desired: Sequence[DesiredInstance], live: Sequence[LiveInstance]
) -> dict[str, ReconciliationRecord]:
    """Return one record per desired instance, keyed by name.

    A live instance is bound only when both name and region match exactly.
    Live instances with no declared counterpart are ignored.
    """
    by_name: dict[str, DesiredInstance] = {}
    for d in desired:
        if d.name in by_name:
            raise ValueError(f"Duplicate desired instance name: {d.name!r}")
        by_name[d.name] = d

    records = {d.name: ReconciliationRecord.unbound(d) for d in desired}
    for inst in live:
        d = by_name.get(inst.name)
        if d is not None and d.region == inst.region:
            records[inst.name] = ReconciliationRecord.from_live(inst, desired=d)
    return records
