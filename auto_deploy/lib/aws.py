"""AWS client helpers for boto3 operations."""

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


def get_session(profile: str | None = None) -> boto3.Session:
    """Create boto3 session with optional profile."""
    if profile:
        return boto3.Session(profile_name=profile)
    return boto3.Session()


def get_caller_arn(session: boto3.Session) -> str | None:
    """Get the ARN of the IAM entity behind the current credentials.

    Returns None when no usable credentials exist.
    """
    try:
        return session.client("sts").get_caller_identity()["Arn"]
    except (BotoCoreError, ClientError) as e:
        logger.debug("Could not resolve AWS identity: %s", e)
        return None


def get_region(session: boto3.Session) -> str | None:
    """Region from the profile or AWS_REGION / AWS_DEFAULT_REGION."""
    return session.region_name


def account_from_arn(arn: str) -> str | None:
    """Account ID field of an ARN (arn:aws:sts::123456789012:assumed-role/...)."""
    parts = arn.split(":")
    if len(parts) < 6:
        return None
    return parts[4] or None
