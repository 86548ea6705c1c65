"""Shared test fixtures."""

from unittest.mock import MagicMock

import pytest

from rdsreconcile.context import ReconcileContext

ACCOUNT_ID = "123456789012"


@pytest.fixture
def aws_credentials(monkeypatch):
    """Set dummy AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_REGION", raising=False)


@pytest.fixture
def identity():
    resolver = MagicMock()
    resolver.resolve_account.return_value = ACCOUNT_ID
    return resolver


@pytest.fixture
def rds_client():
    client = MagicMock()
    client.list_instances.return_value = []
    client.list_tags.return_value = []
    return client


@pytest.fixture
def context(rds_client, identity):
    """A context whose every region is served by the same mocked RDSClient."""
    return ReconcileContext(
        session=MagicMock(),
        regions=["us-east-1"],
        identity=identity,
        client_factory=lambda region: rds_client,
    )


def raw_instance(name, status="available", **overrides):
    """A describe_db_instances descriptor as boto3 returns it."""
    db = {
        "DBInstanceIdentifier": name,
        "DBInstanceStatus": status,
        "Engine": "postgres",
        "EngineVersion": "15.4",
        "DBInstanceClass": "db.t3.micro",
        "MasterUsername": "admin",
        "DBName": "app",
        "AllocatedStorage": 20,
        "StorageType": "gp2",
        "LicenseModel": "postgresql-license",
        "MultiAZ": False,
        "AutoMinorVersionUpgrade": True,
        "BackupRetentionPeriod": 7,
        "PreferredBackupWindow": "03:00-04:00",
        "DBSubnetGroup": {"VpcId": "vpc-123"},
    }
    db.update(overrides)
    return db
