"""Check which of the required tools are already installed.

Probes every tool the prepare script manages without installing
anything, so it is safe to run on any machine.
"""

import sys

from .lib.console import console
from .lib.constants import CDK_VERSION
from .lib.installers import build_tool_requirements
from .lib.tools import ToolRequirement


def check_tool(requirement: ToolRequirement) -> bool:
    """Probe one tool and print its status."""
    probe = requirement.probe()
    if not probe.present:
        console.print(f"  [red]✗[/red] {requirement.name} - NOT FOUND")
        return False

    version = probe.version or probe.raw.split("\n")[0]
    # Truncate long version strings
    if len(version) > 60:
        version = version[:60] + "..."

    if not requirement.accepts(probe):
        console.print(f"  [yellow]![/yellow] {requirement.name} - {version} (will be replaced)")
        return False

    console.print(f"  [green]✓[/green] {requirement.name} - {version}")
    return True


def main() -> int:
    """Check all prerequisites and return exit code."""
    console.print("Checking prerequisites...")
    console.print()

    results = [check_tool(requirement) for requirement in build_tool_requirements()]

    console.print()

    if all(results):
        console.print("All prerequisites found!")
        return 0
    else:
        console.print("Some prerequisites are missing or outdated.")
        console.print(f"AWS CLI v2 and AWS CDK {CDK_VERSION} are required; run auto-deploy-prepare to install them.")
        return 1


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
