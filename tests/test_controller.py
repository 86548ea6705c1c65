"""Tests for InstanceController lifecycle operations."""

import pytest
from botocore.exceptions import ClientError

from rdsreconcile.controller import (
    InstanceController,
    build_create_request,
    build_delete_request,
    normalize_security_groups,
)
from rdsreconcile.models import (
    DesiredInstance,
    InstanceStatus,
    LiveInstance,
    ReconciliationRecord,
    Tag,
)
from tests.conftest import ACCOUNT_ID

ARN = f"arn:aws:rds:us-east-1:{ACCOUNT_ID}:db:db1"


def _desired(**kwargs):
    defaults = {
        "name": "db1",
        "region": "us-east-1",
        "engine": "postgres",
        "db_instance_class": "db.t3.micro",
        "allocated_storage": 20,
        "master_username": "admin",
        "master_user_password": "hunter2hunter2",
    }
    defaults.update(kwargs)
    return DesiredInstance(**defaults)


def _bound(desired=None, **live_kwargs):
    live_kwargs.setdefault("status", InstanceStatus.AVAILABLE)
    live = LiveInstance(name="db1", region="us-east-1", **live_kwargs)
    return ReconciliationRecord.from_live(live, desired or _desired())


@pytest.mark.parametrize(
    "status,expected",
    [
        (InstanceStatus.PRESENT, True),
        (InstanceStatus.CREATING, True),
        (InstanceStatus.AVAILABLE, True),
        (InstanceStatus.ABSENT, False),
        (InstanceStatus.OTHER, False),
        ("deleting", False),
        ("modifying", False),
        ("stopped", False),
        ("", False),
    ],
)
def test_exists(context, status, expected):
    record = ReconciliationRecord(name="db1", region="us-east-1", status=status)
    assert InstanceController(context, record).exists() is expected


def test_exists_reads_cached_state_only(context, rds_client):
    InstanceController(context, ReconciliationRecord.unbound(_desired())).exists()

    rds_client.assert_not_called()
    assert rds_client.method_calls == []


def test_exists_logs_declared_region(context, caplog):
    record = ReconciliationRecord.unbound(_desired(region="eu-west-1"))
    with caplog.at_level("INFO", logger="rdsreconcile.controller"):
        InstanceController(context, record).exists()

    assert "db1 exists in region eu-west-1" in caplog.text


def test_normalize_security_groups():
    assert normalize_security_groups(None) == []
    assert normalize_security_groups("sg-1") == ["sg-1"]
    assert normalize_security_groups(["sg-1", None, "sg-2"]) == ["sg-1", "sg-2"]


def test_build_create_request_omits_unset_fields():
    request = build_create_request(_desired(security_groups="sg-1", iops=None, multi_az=False))

    assert request == {
        "DBInstanceIdentifier": "db1",
        "DBInstanceClass": "db.t3.micro",
        "VpcSecurityGroupIds": ["sg-1"],
        "Engine": "postgres",
        "MultiAZ": False,
        "AllocatedStorage": 20,
        "MasterUsername": "admin",
        "MasterUserPassword": "hunter2hunter2",
    }


def test_build_create_request_full():
    request = build_create_request(
        _desired(
            db_name="app",
            engine_version="15.4",
            license_model="postgresql-license",
            storage_type="io1",
            iops=1000,
            db_subnet_group_name="private",
            security_groups=("sg-1", "sg-2"),
        )
    )

    assert request["DBName"] == "app"
    assert request["EngineVersion"] == "15.4"
    assert request["LicenseModel"] == "postgresql-license"
    assert request["StorageType"] == "io1"
    assert request["Iops"] == 1000
    assert request["DBSubnetGroupName"] == "private"
    assert request["VpcSecurityGroupIds"] == ["sg-1", "sg-2"]


def test_build_delete_request():
    assert build_delete_request(_desired(skip_final_snapshot=True)) == {
        "DBInstanceIdentifier": "db1",
        "SkipFinalSnapshot": True,
    }
    assert build_delete_request(_desired(final_db_snapshot_identifier="db1-final")) == {
        "DBInstanceIdentifier": "db1",
        "SkipFinalSnapshot": False,
        "FinalDBSnapshotIdentifier": "db1-final",
    }


def test_create_then_tags(context, rds_client):
    record = ReconciliationRecord.unbound(_desired(tags={"env": "prod"}))
    controller = InstanceController(context, record)

    assert controller.exists() is False
    controller.create()

    assert [c[0] for c in rds_client.method_calls] == ["create_instance", "add_tags"]
    rds_client.create_instance.assert_called_once_with(build_create_request(record.desired))
    rds_client.add_tags.assert_called_once_with(ARN, {"env": "prod", "Name": "db1"})
    assert record.status == InstanceStatus.PRESENT


def test_create_without_tags_still_sets_name(context, rds_client):
    controller = InstanceController(context, ReconciliationRecord.unbound(_desired()))
    controller.create()

    rds_client.add_tags.assert_called_once_with(ARN, {"Name": "db1"})


def test_create_failure_propagates(context, rds_client):
    rds_client.create_instance.side_effect = ClientError(
        {"Error": {"Code": "DBInstanceAlreadyExists", "Message": "exists"}}, "CreateDBInstance"
    )
    record = ReconciliationRecord.unbound(_desired())

    with pytest.raises(ClientError, match="DBInstanceAlreadyExists"):
        InstanceController(context, record).create()

    assert record.status == InstanceStatus.ABSENT
    rds_client.add_tags.assert_not_called()


def test_destroy(context, rds_client):
    record = _bound(_desired(skip_final_snapshot=True))
    InstanceController(context, record).destroy()

    rds_client.delete_instance.assert_called_once_with(
        {"DBInstanceIdentifier": "db1", "SkipFinalSnapshot": True}
    )
    assert record.status == InstanceStatus.ABSENT


def test_destroy_failure_propagates(context, rds_client):
    rds_client.delete_instance.side_effect = ClientError(
        {"Error": {"Code": "InvalidDBInstanceState", "Message": "creating"}}, "DeleteDBInstance"
    )
    record = _bound(_desired(skip_final_snapshot=True), status=InstanceStatus.CREATING)

    with pytest.raises(ClientError):
        InstanceController(context, record).destroy()

    assert record.status == InstanceStatus.CREATING


def test_create_requires_declared_instance(context):
    live = LiveInstance(name="db1", region="us-east-1", status=InstanceStatus.AVAILABLE)
    controller = InstanceController(context, ReconciliationRecord.from_live(live))

    with pytest.raises(ValueError, match="No declared instance"):
        controller.create()


def test_read_only_accessors(context):
    record = _bound(iops=1000, multi_az=True, master_username="admin", vpc_id="vpc-1")
    controller = InstanceController(context, record)

    assert controller.iops == 1000
    assert controller.multi_az is True
    assert controller.master_username == "admin"
    assert controller.vpc_id == "vpc-1"
    with pytest.raises(AttributeError):
        controller.iops = 2000


def test_read_only_accessors_unbound(context):
    controller = InstanceController(context, ReconciliationRecord.unbound(_desired()))
    assert controller.license_model is None


def test_tags_property_and_setter(context, rds_client):
    record = _bound(tags=(Tag("env", "prod"), Tag("temp", "x")))
    rds_client.list_tags.return_value = list(record.live.tags)
    controller = InstanceController(context, record)

    assert controller.tags == {"env": "prod", "temp": "x"}
    controller.tags = {"env": "staging"}

    rds_client.add_tags.assert_called_once_with(ARN, {"env": "staging"})
    rds_client.remove_tags.assert_called_once_with(ARN, ["temp"])
