import json
import logging
import os
from pathlib import Path
from typing import NoReturn, Optional

import typer

from ...core.bootstrap import BootstrapResult, bootstrap
from ...core.config_store import ConfigStore, load_dotenv_for_executable
from ...core.errors import MshError
from ...core.logging_utils import setup_logging
from ...core.overlay import RuntimeOverrides

logger = logging.getLogger("msh_bootstrap.cli")

app = typer.Typer(add_completion=False)


def get_msh_version() -> str:
    import importlib.metadata

    try:
        return importlib.metadata.version("msh-bootstrap")
    except Exception:
        return "unknown"


def raise_exit(message: str, *, cause: Optional[BaseException] = None) -> NoReturn:
    typer.echo(message, err=True)
    if cause is not None:
        raise typer.Exit(code=1) from cause
    raise typer.Exit(code=1)


def _version_callback(value: bool) -> None:
    if not value:
        return
    typer.echo(f"msh-bootstrap {get_msh_version()}")
    raise typer.Exit(code=0)


def _print_summary(result: BootstrapResult) -> None:
    runtime = result.runtime
    typer.echo(f"msh id: {runtime.msh.id or '-'}")
    typer.echo(
        f"server: {Path(runtime.server.folder) / runtime.server.file_name}"
        f" ({runtime.server.version}, protocol {runtime.server.protocol})"
    )
    typer.echo(f"start command: {runtime.commands.start_server}")
    if result.endpoints is not None:
        endpoints = result.endpoints
        typer.echo(
            f"proxy: {endpoints.listen_host}:{endpoints.listen_port}"
            f" --> {endpoints.target_host}:{endpoints.target_port}"
        )
    if result.status.java_version:
        typer.echo(f"java: {result.status.java_version}")
    for issue in result.status.issues:
        typer.echo(f"warning: {issue.code.value}: {issue.error.message}")
    if result.save_error is not None:
        typer.echo(f"warning: config not saved: {result.save_error}", err=True)


@app.command()
def start(
    folder: Optional[str] = typer.Option(
        None, "--folder", envvar="MSH_FOLDER", help="Minecraft server folder path."
    ),
    file_name: Optional[str] = typer.Option(
        None, "--file", envvar="MSH_FILE", help="Minecraft server file name."
    ),
    server_version: Optional[str] = typer.Option(
        None,
        "--server-version",
        envvar="MSH_SERVER_VERSION",
        help="Minecraft server version (--version shows the msh-bootstrap version).",
    ),
    protocol: Optional[int] = typer.Option(
        None, "--protocol", envvar="MSH_PROTOCOL", help="Minecraft server protocol."
    ),
    msparam: Optional[str] = typer.Option(
        None, "--msparam", envvar="MSH_MSPARAM", help="Start server parameters."
    ),
    allowkill: Optional[int] = typer.Option(
        None,
        "--allowkill",
        envvar="MSH_ALLOWKILL",
        help="Seconds after which the server is killed if the stop command fails.",
    ),
    identity: Optional[str] = typer.Option(
        None, "--id", envvar="MSH_ID", help="msh ID."
    ),
    debug: Optional[int] = typer.Option(
        None, "-d", "--debug", envvar="MSH_DEBUG", help="Debug level."
    ),
    allowsuspend: Optional[bool] = typer.Option(
        None,
        "--allowsuspend/--no-allowsuspend",
        envvar="MSH_ALLOWSUSPEND",
        help="Whether the minecraft server process can be suspended.",
    ),
    infohibe: Optional[str] = typer.Option(
        None, "--infohibe", envvar="MSH_INFOHIBE", help="Hibernation info."
    ),
    infostar: Optional[str] = typer.Option(
        None, "--infostar", envvar="MSH_INFOSTAR", help="Starting info."
    ),
    notifyupd: Optional[bool] = typer.Option(
        None,
        "--notifyupd/--no-notifyupd",
        envvar="MSH_NOTIFYUPD",
        help="Whether update notifications are allowed.",
    ),
    notifymes: Optional[bool] = typer.Option(
        None,
        "--notifymes/--no-notifymes",
        envvar="MSH_NOTIFYMES",
        help="Whether message notifications are allowed.",
    ),
    port: Optional[int] = typer.Option(
        None, "--port", envvar="MSH_PORT", help="msh listen port."
    ),
    timeout: Optional[int] = typer.Option(
        None,
        "--timeout",
        envvar="MSH_TIMEOUT",
        help="Seconds to wait before stopping an empty minecraft server.",
    ),
    config_dir: Optional[Path] = typer.Option(
        None,
        "--config-dir",
        envvar="MSH_CONFIG_DIR",
        help="Directory holding msh-config.json (defaults to the executable folder).",
    ),
    output_json: bool = typer.Option(
        False, "--json", help="Emit the bootstrap result as JSON."
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Load, validate and persist the msh configuration."""
    overrides = RuntimeOverrides(
        folder=folder,
        file_name=file_name,
        version=server_version,
        protocol=protocol,
        start_server_param=msparam,
        stop_server_allow_kill=allowkill,
        identity=identity,
        debug=debug,
        allow_suspend=allowsuspend,
        info_hibernation=infohibe,
        info_starting=infostar,
        notify_update=notifyupd,
        notify_message=notifymes,
        listen_port=port,
        time_before_stopping_empty_server=timeout,
    )
    setup_logging()
    try:
        result = bootstrap(overrides, store=ConfigStore(config_dir))
    except MshError as exc:
        raise_exit(f"msh startup failed: {exc}", cause=exc)

    if output_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return
    _print_summary(result)


def main() -> None:
    """Entrypoint for CLI execution.

    A .env file is read from MSH_CONFIG_DIR when set, else from the executable
    folder. The --config-dir flag is parsed too late to affect it.
    """
    config_dir = os.environ.get("MSH_CONFIG_DIR")
    load_dotenv_for_executable(Path(config_dir) if config_dir else None)
    app()


if __name__ == "__main__":
    main()
