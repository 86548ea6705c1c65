"""Default region discovery."""

import os

import boto3


def discover_regions(session: boto3.Session | None = None) -> list[str]:
    """Return [AWS_REGION] when set, otherwise every region EC2 reports."""
    region = os.environ.get("AWS_REGION")
    if region:
        return [region]
    session = session or boto3.Session()
    ec2 = session.client("ec2", region_name=session.region_name or "us-east-1")
    return [r["RegionName"] for r in ec2.describe_regions()["Regions"]]


def partition_for_region(region: str) -> str:
    """ARN partition for a region name."""
    if region.startswith("cn-"):
        return "aws-cn"
    if region.startswith("us-gov-"):
        return "aws-us-gov"
    return "aws"
