"""
Switchboard CLI

Operator commands for running the gateway and managing providers without
the browser UI.
"""
import asyncio
import json
from typing import Any, Awaitable, Callable, Optional

import typer

from switchboard.config import get_settings
from switchboard.errors import GatewayError
from switchboard.services.agent_bridge import check_container_runtime
from switchboard.services.container import Services, create_services
from switchboard.utils.logging import setup_logging

app = typer.Typer(
    name="switchboard",
    help="Local provider gateway and chat dispatch hub",
    add_completion=False,
)


def _run(operation: Callable[[Services], Awaitable[Any]]) -> Any:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    async def runner() -> Any:
        services = await create_services(settings)
        try:
            return await operation(services)
        finally:
            await services.close()

    try:
        return asyncio.run(runner())
    except GatewayError as e:
        typer.secho(f"Error: {e.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


@app.command(help="Run the HTTP server")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Listen port"),
):
    from switchboard.main import run

    settings = get_settings()
    if host:
        settings.api_host = host
    if port:
        settings.api_port = port
    run()


@app.command(help="Show runtime readiness and provider summary")
def status():
    async def operation(services: Services) -> Any:
        ready, error = await check_container_runtime(services.settings.container_runtime)
        summary = await services.admin.summary()
        return {
            "runtimeReady": ready,
            "runtimeError": error,
            "providerCount": summary["providerCount"],
            "defaultProviderId": summary["defaultProviderId"],
        }

    _echo_json(_run(operation))


@app.command(help="List providers (secrets masked)")
def providers():
    _echo_json(_run(lambda services: services.admin.list_masked()))


@app.command(help="Merge the preset providers into the store")
def bootstrap():
    count = _run(lambda services: services.admin.bootstrap())
    typer.echo(f"Providers configured: {count}")


@app.command(help="Refresh the model list of a provider")
def refresh(provider_id: str = typer.Argument(..., help="Provider id")):
    models = _run(lambda services: services.catalog.refresh(services.store, provider_id))
    if not models:
        typer.echo("No models reported")
    for model in models:
        typer.echo(model)


if __name__ == "__main__":
    app()
