"""Account id resolution for building RDS resource ARNs."""

import logging
import re
from typing import Protocol

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# "User: arn:aws:iam::123456789012:user/alice is not authorized to perform ..."
IAM_USER_ARN_PATTERN = re.compile(r"arn:aws[a-z-]*:iam::(\d+):user")


class IdentityResolutionError(RuntimeError):
    """Raised when the account id cannot be determined."""


class AccountResolver(Protocol):
    def resolve_account(self, region: str) -> str: ...


class IdentityResolver:
    """Resolves the AWS account id via IAM GetUser.

    A caller without iam:GetUser still gets an AccessDenied error whose message
    embeds the caller's own user ARN, so the account id is read from that
    message instead.
    """

    def __init__(self, session: boto3.Session | None = None):
        self._session = session or boto3.Session()

    def resolve_account(self, region: str) -> str:
        iam = self._session.client("iam", region_name=region)
        try:
            user = iam.get_user()["User"]
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") != "AccessDenied":
                raise
            logger.info("GetUser denied in %s, reading account id from the error", region)
            return extract_account_id(str(e))
        # arn:<partition>:iam::<account>:user/<name> or :root
        return user["Arn"].split(":")[4]


def extract_account_id(text: str) -> str:
    """Pull the account id out of text containing an IAM user ARN."""
    match = IAM_USER_ARN_PATTERN.search(text)
    if not match:
        raise IdentityResolutionError(f"No IAM user ARN found in: {text!r}")
    return match.group(1)
