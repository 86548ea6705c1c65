"""Drives a reconciliation pass over declared RDS instances."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from rdsreconcile.attributes import AttributeDiff, diff_attributes, tags_differ
from rdsreconcile.controller import InstanceController
from rdsreconcile.enumerator import EnumerationResult
from rdsreconcile.matcher import match
from rdsreconcile.models import DesiredInstance, Ensure, ReconciliationRecord
from rdsreconcile.tags import TagChanges, compute_tag_changes

logger = logging.getLogger(__name__)


class Action(StrEnum):
    """What a pass did (or, in dry-run, would do) to a resource."""

    CREATE = "CREATE"
    DESTROY = "DESTROY"
    UPDATE_TAGS = "UPDATE_TAGS"
    NOOP = "NOOP"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class ResourceOutcome:
    name: str
    region: str
    action: Action
    ignored_diffs: list[AttributeDiff] = field(default_factory=list)
    tag_changes: TagChanges | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def changed(self) -> bool:
        return self.action in (Action.CREATE, Action.DESTROY, Action.UPDATE_TAGS)


@dataclass(frozen=True)
class ReconcileResult:
    outcomes: list[ResourceOutcome]
    failed_regions: list[str]
    dry_run: bool = False

    @property
    def failed(self) -> list[ResourceOutcome]:
        return [o for o in self.outcomes if o.failed]

    @property
    def changed(self) -> list[ResourceOutcome]:
        return [o for o in self.outcomes if o.changed]


class Reconciler:
    """Compares declared instances to live ones and applies the difference."""

    def __init__(self, context, dry_run: bool = False):
        self._context = context
        self._dry_run = dry_run

    def instances(self) -> list[InstanceController]:
        """One controller per live instance, with no declared counterpart bound."""
        enumeration = self._context.live_instances()
        return [
            InstanceController(self._context, ReconciliationRecord.from_live(inst))
            for inst in enumeration.instances
        ]

    def prefetch(self, desired: Sequence[DesiredInstance]) -> dict[str, InstanceController]:
        return self._bind(desired, self._context.live_instances())

    def _bind(
        self, desired: Sequence[DesiredInstance], enumeration: EnumerationResult
    ) -> dict[str, InstanceController]:
        records = match(desired, enumeration.instances)
        return {name: InstanceController(self._context, r) for name, r in records.items()}

    def reconcile(self, desired: Sequence[DesiredInstance]) -> ReconcileResult:
        enumeration = self._context.live_instances()
        controllers = self._bind(desired, enumeration)
        failed_regions = enumeration.failed_regions
        scope = self._context.regions()

        outcomes = []
        for controller in controllers.values():
            region = controller.desired.region
            if region in failed_regions:
                error = f"Enumeration failed for region {region}"
            elif region not in scope:
                error = f"Region {region} is outside the enumerated regions"
            else:
                outcomes.append(self._reconcile_one(controller))
                continue
            logger.warning("Skipping %s: %s", controller.name, error)
            outcomes.append(
                ResourceOutcome(
                    name=controller.name,
                    region=controller.region,
                    action=Action.SKIPPED,
                    error=error,
                )
            )

        if not self._dry_run and any(o.changed for o in outcomes):
            self._context.invalidate()

        return ReconcileResult(
            outcomes=outcomes, failed_regions=list(failed_regions), dry_run=self._dry_run
        )

    def _reconcile_one(self, controller: InstanceController) -> ResourceOutcome:
        desired = controller.desired
        action = Action.NOOP
        ignored: list[AttributeDiff] = []
        tag_changes = None

        try:
            exists = controller.exists()
            if desired.ensure == Ensure.ABSENT:
                if exists:
                    action = Action.DESTROY
                    if not self._dry_run:
                        controller.destroy()
            elif not exists:
                action = Action.CREATE
                if not self._dry_run:
                    controller.create()
            else:
                live = controller.record.live
                ignored = diff_attributes(desired, live)
                for diff in ignored:
                    logger.warning(
                        "%s: %s differs (desired %r, actual %r) but cannot be changed in place",
                        controller.name,
                        diff.attribute,
                        diff.desired,
                        diff.actual,
                    )
                if tags_differ(desired, live):
                    action = Action.UPDATE_TAGS
                    if self._dry_run:
                        tag_changes = compute_tag_changes(live.tag_map, desired.tags)
                    else:
                        tag_changes = controller.set_tags(desired.tags)
        except Exception as e:
            logger.exception("Failed to reconcile %s in %s", controller.name, controller.region)
            return ResourceOutcome(
                name=controller.name,
                region=controller.region,
                action=action,
                ignored_diffs=ignored,
                tag_changes=tag_changes,
                error=str(e),
            )

        return ResourceOutcome(
            name=controller.name,
            region=controller.region,
            action=action,
            ignored_diffs=ignored,
            tag_changes=tag_changes,
        )
