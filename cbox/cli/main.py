"""CLI entry point.

Validates flags, resolves the security policy, builds the launch plan
and either prints it (--verify) or hands it to the container runtime.

Processing order:
    logging -> flags -> workdir -> policy -> env/credentials -> plan
    -> warnings -> dry run or launch
"""

import asyncio
import functools
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Optional

import pydantic
import typer
from rich.markup import escape
from rich.panel import Panel
from typer.core import TyperCommand

from cbox import __version__
from cbox.cli.utils import console, err_console, print_error, print_warning
from cbox.exceptions import CboxError, ExitCode, WorkdirNotFoundError
from cbox.logging_config import configure_logging
from cbox.sandbox.credentials import credential_mounts, github_token_env, parse_env_flags
from cbox.sandbox.launch import LaunchPlan, build_launch_plan, find_ssh_agent_socket
from cbox.sandbox.paths import ValidatedPath, validate_path
from cbox.sandbox.policies import FilesystemMode, OverrideSet, resolve_policy
from cbox.sandbox.runner import DEFAULT_COMMAND, SHELL_COMMAND, SandboxRunner
from cbox.sandbox.tokens import extract_gh_cli_token
from cbox.sandbox.validation import (
    validate_boolean,
    validate_network_type,
    validate_resource_limit,
    validate_security_mode,
)
from cbox.settings import Settings, get_settings

logger = logging.getLogger(__name__)

CLAUDE_ARGS_KEY = "cbox.claude_args"

app = typer.Typer(
    name="cbox",
    help="Run Claude in a sandboxed container with a resolved security policy",
    add_completion=False,
    no_args_is_help=False,
)


class SeparatorCommand(TyperCommand):
    """Hands everything after the first ``--`` to claude.

    Without the split, click fills the optional WORKDIR argument from the
    first word after the separator.
    """

    def parse_args(self, ctx: typer.Context, args: list[str]) -> list[str]:
        if "--" in args:
            index = args.index("--")
            args, ctx.meta[CLAUDE_ARGS_KEY] = args[:index], args[index + 1 :]
        return super().parse_args(ctx, args)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"cbox version {__version__}")
        raise typer.Exit()


@app.command(cls=SeparatorCommand)
def main(
    ctx: typer.Context,
    workdir: Annotated[
        Optional[str],  # noqa: UP007
        typer.Argument(help="Project directory to mount at /work (default: current directory)"),
    ] = None,
    security_mode: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--security-mode", help="standard, restricted or paranoid"),
    ] = None,
    network: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--network", help="Override network type: host, bridge or none"),
    ] = None,
    ssh_agent: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--ssh-agent", help="Override SSH agent forwarding: true or false"),
    ] = None,
    read_only: Annotated[
        bool,
        typer.Option("--read-only", help="Mount the project directory read-only"),
    ] = False,
    env: Annotated[
        Optional[list[str]],  # noqa: UP007
        typer.Option("--env", "-e", help="Pass NAME from the host, or NAME=value"),
    ] = None,
    memory: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--memory", help="Memory limit (e.g. 512m, 4g)"),
    ] = None,
    cpus: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--cpus", help="CPU limit (e.g. 1, 1.5)"),
    ] = None,
    shell: Annotated[
        bool,
        typer.Option("--shell", help="Start bash instead of claude"),
    ] = False,
    verify: Annotated[
        bool,
        typer.Option("--verify", help="Print the launch plan and exit without starting"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show resolution diagnostics on stderr"),
    ] = False,
    version: Annotated[
        Optional[bool],  # noqa: UP007
        typer.Option(
            "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
        ),
    ] = None,
) -> None:
    """Launch a sandboxed Claude session.

    Arguments after -- are passed to claude unchanged.
    """
    try:
        settings = get_settings()
    except pydantic.ValidationError as e:
        err_console.print("[bold red]cbox: Error:[/bold red] Invalid configuration")
        err_console.print(escape(str(e)), soft_wrap=True)
        raise typer.Exit(code=ExitCode.VALIDATION_ERROR) from e

    configure_logging(verbose=verbose or settings.verbose)
    environment = dict(os.environ)

    try:
        plan = _prepare_plan(
            settings,
            environment,
            workdir=workdir,
            security_mode=security_mode,
            network=network,
            ssh_agent=ssh_agent,
            read_only=read_only,
            env_flags=env or [],
            memory=memory,
            cpus=cpus,
        )
    except CboxError as e:
        print_error(e)
        raise typer.Exit(code=e.exit_code) from e

    for warning in plan.warnings:
        print_warning(warning)

    claude_args = ctx.meta.get(CLAUDE_ARGS_KEY, [])
    command = list(SHELL_COMMAND) if shell else [*DEFAULT_COMMAND, *claude_args]
    runner = SandboxRunner(runtime=settings.runtime, image=settings.image)
    logger.debug("Guest command: %s (%d arguments)", command[0], len(command) - 1)

    if verify:
        _show_plan(plan, runner.build_command(plan, command, interactive=False, redact=True))
        raise typer.Exit(code=ExitCode.SUCCESS)

    try:
        exit_code = asyncio.run(runner.run(plan, command))
    except CboxError as e:
        print_error(e)
        raise typer.Exit(code=e.exit_code) from e

    raise typer.Exit(code=exit_code)


def _prepare_plan(
    settings: Settings,
    environment: Mapping[str, str],
    *,
    workdir: str | None,
    security_mode: str | None,
    network: str | None,
    ssh_agent: str | None,
    read_only: bool,
    env_flags: list[str],
    memory: str | None,
    cpus: str | None,
) -> LaunchPlan:
    """Validate all input, resolve the policy and build the plan."""
    # Flags
    mode = validate_security_mode(
        security_mode if security_mode is not None else settings.security_mode
    )
    overrides = OverrideSet(
        network=validate_network_type(network) if network is not None else None,
        ssh_agent=validate_boolean(ssh_agent, "--ssh-agent") if ssh_agent is not None else None,
        filesystem=FilesystemMode.READ_ONLY if read_only else None,
    )
    limits = validate_resource_limit(
        memory if memory is not None else settings.memory,
        cpus if cpus is not None else settings.cpus,
    )

    # Working directory
    project = _validate_workdir(workdir if workdir is not None else os.getcwd())

    # Policy (raises on bypass signals)
    policy = resolve_policy(mode, overrides, environment=environment)

    # Environment and credentials
    requested_env = parse_env_flags(env_flags, environment)
    extractor = functools.partial(extract_gh_cli_token, timeout=settings.token_timeout_seconds)
    token_spec = github_token_env(environment, extractor=extractor)
    if token_spec is not None:
        requested_env.append(token_spec)

    home = Path(environment["HOME"]) if environment.get("HOME") else Path.home()
    mounts = credential_mounts(home)

    ssh_socket = find_ssh_agent_socket(environment) if policy.ssh_agent else None

    return build_launch_plan(
        policy,
        project,
        mounts,
        requested_env,
        limits=limits,
        ssh_agent_socket=ssh_socket,
    )


def _validate_workdir(raw: str) -> ValidatedPath:
    validated = validate_path(raw)
    if not validated.canonical.is_dir():
        raise WorkdirNotFoundError(raw)
    return validated


def _show_plan(plan: LaunchPlan, command: list[str]) -> None:
    """Print the resolved configuration and the masked runtime argv."""
    policy = plan.policy
    err_console.print(
        Panel(
            f"Mode: {policy.mode}\n"
            f"Network: {policy.network}\n"
            f"SSH Agent: {'true' if policy.ssh_agent else 'false'}\n"
            f"Read-only: {'true' if policy.read_only else 'false'}",
            title="Security configuration",
            border_style="blue",
        )
    )

    for arg in command:
        console.print(arg, markup=False, highlight=False, emoji=False, soft_wrap=True)


if __name__ == "__main__":
    app()
