"""AWS credential check with an operator fallback."""

import logging
import subprocess
from typing import Callable

from botocore.exceptions import BotoCoreError
from rich.prompt import Prompt

from .aws import get_caller_arn, get_session
from .console import console

logger = logging.getLogger(__name__)

CONFIGURE = "1"
SKIP = "2"

# Returns the operator's choice: CONFIGURE, SKIP or anything else (treated as SKIP)
DecisionProvider = Callable[[], str]


def prompt_credential_choice() -> str:
    """Ask the operator how to proceed without resolvable credentials."""
    console.print("Please choose one of the following options:")
    console.print("1. Run 'aws configure' to configure AWS CLI")
    console.print("2. Add IAM role later")
    try:
        return Prompt.ask("Enter your choice (1/2)", default=SKIP)
    except (KeyboardInterrupt, EOFError):
        console.print("\nCancelled.")
        return SKIP


def resolve_identity() -> str | None:
    """Resolve the current AWS identity ARN without prompting."""
    try:
        session = get_session()
    except BotoCoreError as e:
        logger.debug("Could not create AWS session: %s", e)
        return None
    return get_caller_arn(session)


def run_aws_configure() -> bool:
    """Run the AWS CLI's interactive credential setup attached to the terminal."""
    try:
        return subprocess.run(["aws", "configure"]).returncode == 0
    except FileNotFoundError:
        logger.warning("AWS CLI not found, cannot run 'aws configure'")
        return False


def check_credentials(decide: DecisionProvider = prompt_credential_choice) -> str | None:
    """
    Check AWS credentials and offer to configure them.

    Missing credentials never fail the run; they only have to be in place
    before anything is deployed.

    Args:
        decide: Supplies the operator's choice when no identity resolves.

    Returns:
        The resolved identity ARN, or None.
    """
    arn = resolve_identity()
    if arn:
        logger.info("Using AWS credentials for: %s", arn)
        logger.info("Make sure this IAM entity has necessary permissions to create resources")
        return arn

    logger.warning("AWS CLI is not configured with valid credentials")
    choice = (decide() or "").strip()

    if choice != CONFIGURE:
        logger.warning("Continuing without AWS credentials")
        return None

    run_aws_configure()
    arn = resolve_identity()
    if arn:
        logger.info("AWS credentials configured successfully for: %s", arn)
    else:
        logger.warning("AWS credentials still not configured correctly")
        logger.warning("Continuing anyway, but you'll need to configure AWS credentials later")
    return arn
