"""Lifecycle operations for a single RDS instance."""

import logging
from collections.abc import Mapping

from rdsreconcile.attributes import READ_ONLY_ATTRIBUTES
from rdsreconcile.models import DesiredInstance, InstanceStatus, ReconciliationRecord
from rdsreconcile.tags import TagChanges, TagReconciler

logger = logging.getLogger(__name__)

EXISTING_STATUSES = frozenset(
    {InstanceStatus.PRESENT, InstanceStatus.CREATING, InstanceStatus.AVAILABLE}
)


def _drop_none(request: dict) -> dict:
    return {k: v for k, v in request.items() if v is not None}


def normalize_security_groups(groups) -> list[str]:
    if groups is None:
        return []
    if isinstance(groups, str):
        groups = [groups]
    return [g for g in groups if g is not None]


def build_create_request(desired: DesiredInstance) -> dict:
    """Translate a declared instance into CreateDBInstance parameters."""
    return _drop_none(
        {
            "DBInstanceIdentifier": desired.name,
            "DBName": desired.db_name,
            "DBInstanceClass": desired.db_instance_class,
            "VpcSecurityGroupIds": normalize_security_groups(desired.security_groups),
            "Engine": desired.engine,
            "EngineVersion": desired.engine_version,
            "LicenseModel": desired.license_model,
            "StorageType": desired.storage_type,
            "MultiAZ": desired.multi_az,
            "AllocatedStorage": desired.allocated_storage,
            "Iops": desired.iops,
            "MasterUsername": desired.master_username,
            "MasterUserPassword": desired.master_user_password,
            "DBSubnetGroupName": desired.db_subnet_group_name,
        }
    )


def build_delete_request(desired: DesiredInstance) -> dict:
    return _drop_none(
        {
            "DBInstanceIdentifier": desired.name,
            "SkipFinalSnapshot": desired.skip_final_snapshot,
            "FinalDBSnapshotIdentifier": desired.final_db_snapshot_identifier,
        }
    )


def creation_tags(desired: DesiredInstance) -> dict[str, str]:
    tags = dict(desired.tags or {})
    tags["Name"] = desired.name
    return tags


def _read_only_property(attribute: str) -> property:
    def getter(self):
        return self.record.attribute(attribute)

    return property(getter, doc=f"Live {attribute}; read-only.")


class InstanceController:
    """Provider-side operations on one ReconciliationRecord.

    Provider errors from create/destroy/tag calls are not caught here.
    """

    def __init__(self, context, record: ReconciliationRecord):
        self._context = context
        self.record = record

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def region(self) -> str:
        return self.record.region

    @property
    def desired(self) -> DesiredInstance:
        if self.record.desired is None:
            raise ValueError(f"No declared instance for {self.name!r}")
        return self.record.desired

    def exists(self) -> bool:
        region = self.record.declared_region or self.record.region
        logger.info("Checking if instance %s exists in region %s", self.name, region)
        return self.record.status in EXISTING_STATUSES

    def create(self) -> dict:
        desired = self.desired
        logger.info("Starting DB instance %s", self.name)
        client = self._context.rds(desired.region)
        response = client.create_instance(build_create_request(desired))
        self.record.status = InstanceStatus.PRESENT

        tags = creation_tags(desired)
        logger.info("Adding tags to %s", self.name)
        client.add_tags(self._context.instance_arn(desired.region, desired.name), tags)
        return response

    def destroy(self) -> dict:
        desired = self.desired
        logger.info("Deleting instance %s in region %s", self.name, desired.region)
        logger.info("Skip final snapshot: %s", desired.skip_final_snapshot)
        response = self._context.rds(desired.region).delete_instance(build_delete_request(desired))
        self.record.status = InstanceStatus.ABSENT
        return response

    @property
    def tags(self) -> dict[str, str]:
        return self.record.live.tag_map if self.record.live else {}

    @tags.setter
    def tags(self, value: Mapping[str, str]) -> None:
        self.set_tags(value)

    def set_tags(self, value: Mapping[str, str]) -> TagChanges:
        return TagReconciler(self._context).set_tags(self.record, value)


for _attribute in READ_ONLY_ATTRIBUTES:
    setattr(InstanceController, _attribute, _read_only_property(_attribute))
del _attribute
