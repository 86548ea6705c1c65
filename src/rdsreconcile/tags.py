"""Tag reconciliation for RDS instances."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from rdsreconcile.models import ReconciliationRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagChanges:
    """Tag writes needed to reach a desired tag set.

    ``add`` is submitted whole; the provider overwrites existing keys.
    """

    add: dict[str, str]
    remove: list[str]

    @property
    def empty(self) -> bool:
        return not self.add and not self.remove


def compute_tag_changes(current_keys: Iterable[str], desired: Mapping[str, str]) -> TagChanges:
    remove = []
    for key in current_keys:
        if key not in desired and key not in remove:
            remove.append(key)
    return TagChanges(add=dict(desired), remove=remove)


class TagReconciler:
    """Moves an instance's live tags to a desired mapping.

    The add and remove calls are separate; if the second fails the first is
    not rolled back.
    """

    def __init__(self, context):
        self._context = context

    def set_tags(self, record: ReconciliationRecord, desired: Mapping[str, str]) -> TagChanges:
        logger.info("Updating tags for %s in region %s", record.name, record.region)
        client = self._context.rds(record.region)
        arn = self._context.instance_arn(record.region, record.name)

        # Diff against what the provider reports now, not the prefetched snapshot.
        current = client.list_tags(arn)
        changes = compute_tag_changes((t.key for t in current), desired)

        if changes.add:
            client.add_tags(arn, changes.add)
        if changes.remove:
            client.remove_tags(arn, changes.remove)
        return changes
