"""Thin boto3 wrapper for the RDS API calls used by the reconciler."""

from collections.abc import Iterable, Mapping

import boto3

from rdsreconcile.models import Tag


class RDSClient:
    """Wraps boto3 RDS calls for a single region."""

    def __init__(self, region: str | None = None, session: boto3.Session | None = None):
        session = session or boto3.Session()
        self._client = session.client("rds", **({"region_name": region} if region else {}))
        self.region = region

    def list_instances(self) -> list[dict]:
        """Return every DBInstance descriptor in the region.

        All pages are drained; a failure on any page propagates.
        """
        paginator = self._client.get_paginator("describe_db_instances")
        instances = []
        for page in paginator.paginate():
            instances.extend(page["DBInstances"])
        return instances

    def list_tags(self, arn: str) -> list[Tag]:
        resp = self._client.list_tags_for_resource(ResourceName=arn)
        return [Tag(key=t["Key"], value=t["Value"]) for t in resp.get("TagList", [])]

    def create_instance(self, request: Mapping) -> dict:
        return self._client.create_db_instance(**request)

    def delete_instance(self, request: Mapping) -> dict:
        return self._client.delete_db_instance(**request)

    def add_tags(self, arn: str, tags: Mapping[str, str]) -> None:
        self._client.add_tags_to_resource(
            ResourceName=arn,
            Tags=[{"Key": k, "Value": v} for k, v in tags.items()],
        )

    def remove_tags(self, arn: str, keys: Iterable[str]) -> None:
        self._client.remove_tags_from_resource(ResourceName=arn, TagKeys=list(keys))
