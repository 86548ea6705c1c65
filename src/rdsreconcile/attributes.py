"""Attribute classification and desired/live attribute comparison."""

from dataclasses import dataclass

from rdsreconcile.models import DesiredInstance, LiveInstance

# Reported by enumeration, never set after creation.
READ_ONLY_ATTRIBUTES: frozenset[str] = frozenset(
    {
        "auto_minor_version_upgrade",
        "backup_retention_period",
        "character_set_name",
        "creation_time",
        "iops",
        "master_username",
        "multi_az",
        "backup_window",
        "vpc_id",
        "license_model",
    }
)

MUTABLE_ATTRIBUTES: frozenset[str] = frozenset({"tags"})

# Declared fields that have a live counterpart to compare against.
COMPARED_ATTRIBUTES: tuple[str, ...] = (
    "engine",
    "db_instance_class",
    "db_name",
    "master_username",
    "allocated_storage",
    "storage_type",
    "license_model",
    "multi_az",
    "iops",
)


def is_read_only(attribute: str) -> bool:
    return attribute in READ_ONLY_ATTRIBUTES


def is_mutable(attribute: str) -> bool:
    return attribute in MUTABLE_ATTRIBUTES


@dataclass(frozen=True)
class AttributeDiff:
    """A declared value that differs from the live one."""

    attribute: str
    desired: object
    actual: object

    @property
    def read_only(self) -> bool:
        return is_read_only(self.attribute)


def diff_attributes(desired: DesiredInstance, live: LiveInstance) -> list[AttributeDiff]:
    """Compare create-time attributes. Undeclared (None) values are unmanaged."""
    diffs = []
    for attribute in COMPARED_ATTRIBUTES:
        want = getattr(desired, attribute)
        if want is None:
            continue
        have = getattr(live, attribute)
        if want != have:
            diffs.append(AttributeDiff(attribute=attribute, desired=want, actual=have))
    return diffs


def tags_differ(desired: DesiredInstance, live: LiveInstance) -> bool:
    if desired.tags is None:
        return False
    return dict(desired.tags) != live.tag_map
