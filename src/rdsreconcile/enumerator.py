"""Lists live RDS instances across regions and normalizes them."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from rdsreconcile.models import InstanceStatus, LiveInstance, Tag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnumerationResult:
    """Live instances in region order, plus regions that could not be listed."""

    instances: list[LiveInstance]
    failed_regions: list[str]


class ResourceEnumerator:
    """Enumerates live instances through a ReconcileContext."""

    def __init__(self, context, max_concurrent: int = 1):
        self._context = context
        self._max_concurrent = max_concurrent

    def list_instances(self, regions: list[str]) -> list[LiveInstance]:
        return self.enumerate(regions).instances

    def enumerate(self, regions: list[str]) -> EnumerationResult:
        """List every region; merge results in the order regions were given."""
        if not regions:
            return EnumerationResult(instances=[], failed_regions=[])

        with ThreadPoolExecutor(max_workers=max(1, self._max_concurrent)) as executor:
            futures = [(region, executor.submit(self._list_region, region)) for region in regions]

        instances: list[LiveInstance] = []
        failed_regions: list[str] = []
        for region, future in futures:
            try:
                instances.extend(future.result())
            except Exception:
                logger.exception("Failed to enumerate RDS instances in %s", region)
                failed_regions.append(region)

        return EnumerationResult(instances=instances, failed_regions=failed_regions)

    def _list_region(self, region: str) -> list[LiveInstance]:
        client = self._context.rds(region)
        results = []
        for db in client.list_instances():
            name = db.get("DBInstanceIdentifier")
            if not name:
                continue
            tags = client.list_tags(self._context.instance_arn(region, name))
            results.append(to_live_instance(region, db, tags))
        logger.info("Found %d RDS instance(s) in %s", len(results), region)
        return results


def to_live_instance(region: str, db: dict, tags: list[Tag]) -> LiveInstance:
    """Build a LiveInstance from a describe_db_instances descriptor."""
    return LiveInstance(
        name=db["DBInstanceIdentifier"],
        region=region,
        status=InstanceStatus.from_provider(db.get("DBInstanceStatus")),
        provider_status=db.get("DBInstanceStatus"),
        engine=db.get("Engine"),
        engine_version=db.get("EngineVersion"),
        db_instance_class=db.get("DBInstanceClass"),
        master_username=db.get("MasterUsername"),
        db_name=db.get("DBName"),
        allocated_storage=db.get("AllocatedStorage"),
        storage_type=db.get("StorageType"),
        license_model=db.get("LicenseModel"),
        multi_az=db.get("MultiAZ"),
        iops=db.get("Iops"),
        tags=tuple(tags),
        auto_minor_version_upgrade=db.get("AutoMinorVersionUpgrade"),
        backup_retention_period=db.get("BackupRetentionPeriod"),
        character_set_name=db.get("CharacterSetName"),
        creation_time=db.get("InstanceCreateTime"),
        backup_window=db.get("PreferredBackupWindow"),
        vpc_id=db.get("DBSubnetGroup", {}).get("VpcId"),
    )
