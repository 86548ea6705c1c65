"""Per-run context shared by the enumerator, controllers and tag reconciler."""

import logging
import threading
from collections.abc import Callable, Iterable

import boto3

from rdsreconcile.aws.client import RDSClient
from rdsreconcile.aws.identity import AccountResolver, IdentityResolver
from rdsreconcile.aws.regions import discover_regions, partition_for_region
from rdsreconcile.enumerator import EnumerationResult, ResourceEnumerator

logger = logging.getLogger(__name__)


class ReconcileContext:
    """Holds the boto3 session and everything cached for one reconciler.

    Clients and account ids are cached per region for the lifetime of the
    context. The enumeration is cached when ``cache_enumeration`` is set and
    can be dropped with ``invalidate()``.
    """

    def __init__(
        self,
        session: boto3.Session | None = None,
        regions: Iterable[str] | None = None,
        identity: AccountResolver | None = None,
        client_factory: Callable[[str], RDSClient] | None = None,
        max_concurrent: int = 1,
        cache_enumeration: bool = True,
    ):
        self.session = session or boto3.Session()
        self._regions = list(regions) if regions else None
        self.identity = identity or IdentityResolver(self.session)
        self._client_factory = client_factory or self._default_client
        self.max_concurrent = max_concurrent
        self.cache_enumeration = cache_enumeration
        self._clients: dict[str, RDSClient] = {}
        self._accounts: dict[str, str] = {}
        self._enumeration: EnumerationResult | None = None
        # boto3 sessions are not thread-safe; enumeration may run in a pool
        self._lock = threading.Lock()

    def _default_client(self, region: str) -> RDSClient:
        return RDSClient(region=region, session=self.session)

    def regions(self) -> list[str]:
        if self._regions is None:
            self._regions = discover_regions(self.session)
        return self._regions

    def rds(self, region: str) -> RDSClient:
        with self._lock:
            if region not in self._clients:
                self._clients[region] = self._client_factory(region)
            return self._clients[region]

    def account_id(self, region: str) -> str:
        with self._lock:
            if region not in self._accounts:
                self._accounts[region] = self.identity.resolve_account(region)
            return self._accounts[region]

    def instance_arn(self, region: str, name: str) -> str:
        partition = partition_for_region(region)
        return f"arn:{partition}:rds:{region}:{self.account_id(region)}:db:{name}"

    def live_instances(self, refresh: bool = False) -> EnumerationResult:
        if self._enumeration is not None and self.cache_enumeration and not refresh:
            return self._enumeration
        enumerator = ResourceEnumerator(self, max_concurrent=self.max_concurrent)
        self._enumeration = enumerator.enumerate(self.regions())
        return self._enumeration

    def invalidate(self) -> None:
        logger.debug("Dropping cached enumeration")
        self._enumeration = None
