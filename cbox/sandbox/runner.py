"""Container runtime invocation.

Hands a LaunchPlan to the container runtime (docker by default) as a
discrete argv; no shell is involved at any point.

Usage:
    runner = SandboxRunner()
    exit_code = await runner.run(plan, ["claude"])
"""

import asyncio
import logging
import shutil
import sys
from collections.abc import Sequence

from cbox.exceptions import DependencyError
from cbox.sandbox.launch import CONTAINER_WORKDIR, LaunchPlan
from cbox.settings import get_settings

logger = logging.getLogger(__name__)

DEFAULT_COMMAND: tuple[str, ...] = ("claude",)
SHELL_COMMAND: tuple[str, ...] = ("bash",)


def tty_flags(interactive: bool | None = None) -> list[str]:
    """Interactive flags for the runtime: ``-it`` on a terminal, else ``-i``."""
    if interactive is None:
        interactive = sys.stdin.isatty()
    return ["-it"] if interactive else ["-i"]


class SandboxRunner:
    """Runs a LaunchPlan with the container runtime.

    Usage:
        runner = SandboxRunner(runtime="podman", image="cbox:dev")
        cmd = runner.build_command(plan, ["bash"])
    """

    def __init__(
        self,
        runtime: str | None = None,
        image: str | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            runtime: Runtime executable (default: settings.runtime)
            image: Container image (default: settings.image)
        """
        settings = get_settings()
        self.runtime = runtime or settings.runtime
        self.image = image or settings.image

    def check_runtime(self) -> str:
        """Resolve the runtime executable on PATH.

        Raises:
            DependencyError: If the runtime is not installed
        """
        path = shutil.which(self.runtime)
        if path is None:
            raise DependencyError(
                f"Container runtime '{self.runtime}' not found. "
                "Install Docker or set CBOX_RUNTIME."
            )
        return path

    def build_command(
        self,
        plan: LaunchPlan,
        command: Sequence[str] = DEFAULT_COMMAND,
        *,
        interactive: bool | None = None,
        redact: bool = False,
    ) -> list[str]:
        """Build the complete runtime command.

        Args:
            plan: Launch plan from build_launch_plan()
            command: Command to run inside the container
            interactive: Force TTY allocation on or off (default: detect)
            redact: Mask environment values, for display

        Returns:
            Complete command as list of strings
        """
        cmd = [self.runtime, "run", "--rm"]
        cmd.extend(tty_flags(interactive))
        cmd.extend(plan.redacted_args() if redact else plan.args)
        cmd.extend(["-w", CONTAINER_WORKDIR])
        cmd.append(self.image)
        cmd.extend(command)
        return cmd

    async def run(
        self,
        plan: LaunchPlan,
        command: Sequence[str] = DEFAULT_COMMAND,
    ) -> int:
        """Launch the container and wait for it to exit.

        Standard streams are inherited so the session is interactive.

        Returns:
            The runtime's exit code

        Raises:
            DependencyError: If the runtime is not installed
        """
        executable = self.check_runtime()
        cmd = self.build_command(plan, command)
        cmd[0] = executable

        logger.debug("Launching %s with %d arguments", self.runtime, len(cmd) - 1)

        try:
            process = await asyncio.create_subprocess_exec(*cmd)
        except FileNotFoundError as e:
            raise DependencyError(f"Container runtime '{self.runtime}' not found") from e

        return await process.wait()


async def run_plan(plan: LaunchPlan, command: Sequence[str] = DEFAULT_COMMAND) -> int:
    """Run a launch plan with the configured runtime.

    Convenience wrapper around SandboxRunner.run().
    """
    runner = SandboxRunner()
    return await runner.run(plan, command)


__all__ = [
    "DEFAULT_COMMAND",
    "SHELL_COMMAND",
    "SandboxRunner",
    "run_plan",
    "tty_flags",
]
