"""KubeHealer command-line interface.

Commands:
    kubehealer monitor                              Watch pods and write reports until stopped.
    kubehealer diagnose <pod> [-n NS] [--json]      Diagnose one pod and print the result.
    kubehealer version                              Print version and exit.

Cluster access uses in-cluster config when available, otherwise the local
kubeconfig. Configuration is read from the same environment variables the
monitor uses.
"""

from __future__ import annotations

import asyncio
import json

import click

from kubehealer import __version__
from kubehealer.app import _ComponentError, build_analyzer, create_core_api
from kubehealer.collector.sources import ResourceNotFoundError
from kubehealer.config import load_config
from kubehealer.models.diagnosis import DiagnosisResult, IssueSeverity
from kubehealer.observability.logging import setup_logging
from kubehealer.reports import result_to_dict

# ---------------------------------------------------------------------------
# Colour helpers
# ---------------------------------------------------------------------------

_SEVERITY_COLORS: dict[str, str] = {
    IssueSeverity.ERROR: "red",
    IssueSeverity.WARNING: "yellow",
}

_STATE_COLORS: dict[str, str] = {
    "Running": "green",
    "Waiting": "yellow",
    "Terminated": "red",
}


def _styled_severity(severity: str) -> str:
    color = _SEVERITY_COLORS.get(severity, "white")
    return click.style(severity.upper(), fg=color, bold=True)


def _styled_state(state: str) -> str:
    return click.style(state or "Unknown", fg=_STATE_COLORS.get(state, "white"))


# ---------------------------------------------------------------------------
# Cluster helpers
# ---------------------------------------------------------------------------


def _split_target(pod: str, namespace: str) -> tuple[str, str]:
    """Accept ``name`` or ``namespace/name``; the explicit prefix wins over -n."""
    parts = pod.split("/")
    if len(parts) == 1 and parts[0]:
        return namespace, parts[0]
    if len(parts) == 2 and all(parts):
        return parts[0], parts[1]
    raise click.UsageError(f"POD must be NAME or NAMESPACE/NAME, got: {pod!r}")


async def _diagnose(namespace: str, name: str) -> DiagnosisResult:
    cfg = load_config()
    setup_logging(cfg.log.level, cfg.log.format)
    api = await create_core_api()
    try:
        return await build_analyzer(cfg, api).diagnose(namespace, name)
    finally:
        await api.api_client.close()


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """KubeHealer - rule-based Kubernetes Pod diagnosis."""
    ctx.ensure_object(dict)


# ---------------------------------------------------------------------------
# kubehealer version
# ---------------------------------------------------------------------------


@cli.command("version")
def cmd_version() -> None:
    """Print the KubeHealer version and exit."""
    click.echo(f"kubehealer {__version__}")


# ---------------------------------------------------------------------------
# kubehealer monitor
# ---------------------------------------------------------------------------


@cli.command("monitor")
def cmd_monitor() -> None:
    """Watch pods and write a report for every new failure until SIGINT/SIGTERM."""
    from kubehealer.app import run

    run()


# ---------------------------------------------------------------------------
# kubehealer diagnose
# ---------------------------------------------------------------------------


@cli.command("diagnose")
@click.argument("pod")
@click.option(
    "--namespace",
    "-n",
    default="default",
    show_default=True,
    metavar="NS",
    help="Namespace of the pod.",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    default=False,
    help="Print the diagnosis as JSON.",
)
def cmd_diagnose(pod: str, namespace: str, output_json: bool) -> None:
    """Diagnose POD once and print the result.

    Example:

        kubehealer diagnose payments/api-7d9f --json
    """
    namespace, name = _split_target(pod, namespace)

    if not output_json:
        click.echo(click.style("Diagnosing", bold=True) + f" {namespace}/{name} ...")

    try:
        result = asyncio.run(_diagnose(namespace, name))
    except ResourceNotFoundError as err:
        raise click.ClickException(str(err)) from err
    except _ComponentError as err:
        raise click.ClickException(f"Cannot connect to the cluster: {err.cause}") from err

    if output_json:
        click.echo(json.dumps(result_to_dict(result), indent=2, ensure_ascii=False))
        return

    _print_diagnosis(result)


def _print_diagnosis(result: DiagnosisResult) -> None:
    """Pretty-print a DiagnosisResult."""
    click.echo("")
    click.echo(click.style(f"Pod {result.namespace}/{result.name}", bold=True, underline=True))
    click.echo(f"  {click.style('Phase:', bold=True)}     {result.phase}")
    click.echo(f"  {click.style('Node:', bold=True)}      {result.node_name or '-'}")
    click.echo(f"  {click.style('Restarts:', bold=True)}  {result.restart_count}")

    for container in result.containers:
        click.echo("")
        state = _styled_state(container.state)
        detail = f" ({container.reason})" if container.reason else ""
        click.echo(click.style(f"Container {container.name}", bold=True) + f"  {state}{detail}")
        if container.resource_info:
            click.echo(f"  resources: {container.resource_info}")
        for issue in container.issues:
            click.echo(f"  [{_styled_severity(issue.severity)}] {issue.title}")
            if issue.raw_error:
                click.echo(f"      error: {issue.raw_error}")
            if issue.suggestion:
                click.echo(click.style(f"      hint: {issue.suggestion}", fg="cyan"))
        if container.log_tail:
            click.echo(click.style(f"  Log tail ({len(container.log_tail)} lines):", fg="bright_black"))
            for line in container.log_tail:
                click.echo(f"    {line}")

    if not result.has_issues:
        click.echo("")
        click.echo(click.style("No issues found.", fg="green"))

    click.echo("")
    click.echo(click.style("Recent Events:", bold=True))
    for line in result.recent_events:
        click.echo(f"  {line}")
    click.echo("")


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
