"""Leveled log lines and colored console output using Rich."""

import logging
import sys

from rich.console import Console

console = Console()

# Custom level for end-of-run operator reminders, between WARNING and ERROR
REMINDER = 35
logging.addLevelName(REMINDER, "REMINDER")

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("auto_deploy")


def configure_logging(verbose: bool = False) -> None:
    """Send timestamped log lines for the auto_deploy loggers to stdout."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def remind(message: str) -> None:
    """Log a REMINDER line."""
    logger.log(REMINDER, message)


def print_step(step: str, message: str) -> None:
    """Print a step indicator: [1/9] Installing eksctl..."""
    console.print(f"\n[blue][{step}][/blue] {message}")


def print_error(message: str) -> None:
    """Print error message with red X."""
    console.print(f"   [red]✗[/red] {message}")


def print_header(title: str, emoji: str = "🚀") -> None:
    """Print run header."""
    console.print(f"[blue]{emoji} {title}[/blue]")
    console.print("=" * 30)


def print_config(
    cdk_dir: str,
    project_name: str | None = None,
    platform: str | None = None,
    strict: bool = False,
) -> None:
    """Print configuration summary."""
    console.print("[blue]📋 Configuration:[/blue]")
    console.print(f"   CDK dir:  {cdk_dir}")
    if project_name:
        console.print(f"   Project:  {project_name}")
    if platform:
        console.print(f"   Platform: {platform}")
    if strict:
        console.print("   Policy:   strict")


def print_final_success(message: str = "Environment preparation completed!") -> None:
    """Print final success message."""
    console.print()
    console.print(f"[green]✅ {message}[/green]")
