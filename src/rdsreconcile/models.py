"""Core data models for RDS instance reconciliation."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class InstanceStatus(StrEnum):
    """Lifecycle status of an instance as seen by the reconciler."""

    PRESENT = "present"
    CREATING = "creating"
    AVAILABLE = "available"
    ABSENT = "absent"
    OTHER = "other"

    @classmethod
    def from_provider(cls, raw: str | None) -> "InstanceStatus":
        """Map an RDS DBInstanceStatus onto a reconciler status."""
        if raw == "creating":
            return cls.CREATING
        if raw == "available":
            return cls.AVAILABLE
        return cls.PRESENT


class Ensure(StrEnum):
    """Declared end state of an instance."""

    PRESENT = "present"
    ABSENT = "absent"


@dataclass(frozen=True)
class Tag:
    key: str
    value: str


@dataclass(frozen=True)
class DesiredInstance:
    """A declared RDS instance. (name, region) identifies it."""

    name: str
    region: str
    ensure: Ensure = Ensure.PRESENT
    engine: str | None = None
    engine_version: str | None = None
    db_instance_class: str | None = None
    db_name: str | None = None
    master_username: str | None = None
    master_user_password: str | None = field(default=None, repr=False)
    allocated_storage: int | None = None
    storage_type: str | None = None
    license_model: str | None = None
    multi_az: bool | None = None
    iops: int | None = None
    db_subnet_group_name: str | None = None
    security_groups: str | Sequence[str | None] | None = None
    tags: Mapping[str, str] | None = None
    skip_final_snapshot: bool = False
    final_db_snapshot_identifier: str | None = None


@dataclass(frozen=True)
class LiveInstance:
    """Normalized view of an instance reported by describe_db_instances."""

    name: str
    region: str
    status: InstanceStatus
    provider_status: str | None = None
    engine: str | None = None
    engine_version: str | None = None
    db_instance_class: str | None = None
    master_username: str | None = None
    db_name: str | None = None
    allocated_storage: int | None = None
    storage_type: str | None = None
    license_model: str | None = None
    multi_az: bool | None = None
    iops: int | None = None
    tags: tuple[Tag, ...] = ()
    auto_minor_version_upgrade: bool | None = None
    backup_retention_period: int | None = None
    character_set_name: str | None = None
    creation_time: datetime | None = None
    backup_window: str | None = None
    vpc_id: str | None = None

    @property
    def tag_map(self) -> dict[str, str]:
        return {t.key: t.value for t in self.tags}


@dataclass
class ReconciliationRecord:
    """Working state for one resource during a reconciliation pass.

    ``live`` is None when no live counterpart was found; ``desired`` is None
    when a live instance has no declared counterpart.
    """

    name: str
    region: str
    status: InstanceStatus
    live: LiveInstance | None = None
    desired: DesiredInstance | None = None

    @classmethod
    def from_live(
        cls, live: LiveInstance, desired: DesiredInstance | None = None
    ) -> "ReconciliationRecord":
        return cls(
            name=live.name,
            region=live.region,
            status=live.status,
            live=live,
            desired=desired,
        )

    @classmethod
    def unbound(cls, desired: DesiredInstance) -> "ReconciliationRecord":
        return cls(
            name=desired.name,
            region=desired.region,
            status=InstanceStatus.ABSENT,
            desired=desired,
        )

    @property
    def declared_region(self) -> str | None:
        return self.desired.region if self.desired else None

    def attribute(self, name: str):
        """Return a live attribute, or None if nothing was enumerated."""
        if self.live is None:
            return None
        return getattr(self.live, name)
