"""Switchyard CLI - Main Entry Point.

Commands:
    manifest - Generate the deployment manifest
    routes   - List routes per entry point
    serve    - Local development server
"""

import sys
from itertools import groupby
from pathlib import Path
from typing import Optional

import click

from . import __cli_name__, __version__
from .utils.colors import (
    _ARROW, _CHECK, _CROSS,
    banner, dim, error, info, kv, section, success, table, warning,
)


class SwitchyardGroup(click.Group):
    """Click group subclass with branded help output."""

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        if ctx.parent is None:
            banner("Switchyard", subtitle=f"v{__version__}  {_CHECK}  serverless routing core")
            click.echo()
        super().format_help(ctx, formatter)


@click.group(cls=SwitchyardGroup)
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, verbose: bool):
    """Routing and dependency-injection core for serverless HTTP functions."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose


@cli.command('manifest')
@click.option('--app', 'app_module', required=True, help='Module that declares the controllers')
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path), help='Write JSON to this file')
@click.option('--handler-template', default=None, help='Handler path template, e.g. "handlers/{name}.handler"')
@click.pass_context
def manifest_cmd(ctx, app_module: str, output: Optional[Path], handler_template: Optional[str]):
    """
    Generate the deployment manifest.

    Examples:
      switchyard manifest --app app.main
      switchyard manifest --app app.main -o dist/manifest.json
    """
    from .commands.manifest import generate_manifest, load_app_module

    try:
        load_app_module(app_module)
        manifest = generate_manifest(output, handler_template=handler_template)
    except Exception as e:
        error(f"  {_CROSS} Failed to generate manifest: {e}")
        sys.exit(1)

    if output is None:
        click.echo(manifest.to_json())
        return

    routes = sum(len(entry["routes"]) for entry in manifest.entry_points.values())
    success(f"  {_CHECK} Manifest written {_ARROW} {output}")
    kv("Entry points", str(len(manifest.entry_points)))
    kv("Routes", str(routes))
    if ctx.obj['verbose']:
        for name in manifest.entry_points:
            dim(f"    {name}")


@cli.command('routes')
@click.option('--app', 'app_module', required=True, help='Module that declares the controllers')
def routes_cmd(app_module: str):
    """List routes grouped by entry point, in match order."""
    from .commands.manifest import load_app_module, route_rows

    try:
        load_app_module(app_module)
    except Exception as e:
        error(f"  {_CROSS} Failed to import {app_module}: {e}")
        sys.exit(1)

    rows = route_rows()
    if not rows:
        warning("  No routes registered")
        return

    for name, group in groupby(rows, key=lambda row: row[0]):
        section(name)
        table(["Method", "Path", "Action"], [row[1:] for row in group])
        click.echo()


@cli.command('serve')
@click.option('--app', 'app_module', required=True, help='Module that declares the controllers')
@click.option('--host', default='127.0.0.1', help='Server host')
@click.option('--port', default=3000, type=int, help='Server port')
@click.pass_context
def serve_cmd(ctx, app_module: str, host: str, port: int):
    """
    Start the local development server.

    Examples:
      switchyard serve --app app.main
      switchyard serve --app app.main --port 8080
    """
    from ..config import get_settings
    from ..devserver import serve
    from ..handler import configure
    from ..logs import configure_logging
    from .commands.manifest import load_app_module

    settings = get_settings()
    manager = configure(settings=settings)
    configure_logging(settings, level="DEBUG" if ctx.obj['verbose'] else "INFO")

    try:
        load_app_module(app_module)
    except Exception as e:
        error(f"  {_CROSS} Failed to import {app_module}: {e}")
        sys.exit(1)

    success(f"  {_CHECK} Serving on http://{host}:{port}")
    info(f"  Health check {_ARROW} http://{host}:{port}/health")
    serve(app_module, host=host, port=port, manager=manager, log_level="debug" if ctx.obj['verbose'] else "info")


def main():
    """Entry point for `switchyard` command."""
    cli(obj={})


if __name__ == '__main__':
    main()
