from __future__ import annotations

import logging
from pathlib import Path

import orjson
import typer

from dynaform.config import Settings
from dynaform.errors import SchemaError
from dynaform.rules import validate_submission
from dynaform.schema import load_form_schema
from dynaform.utils import dumps_json

cli = typer.Typer(add_completion=False)


def run_server(host: str | None, port: int | None) -> None:
    import uvicorn

    from dynaform.app import create_app

    settings = Settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    resolved_host = host or settings.host
    resolved_port = port if port is not None else settings.port
    uvicorn.run(create_app(settings), host=resolved_host, port=resolved_port)


@cli.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    host: str | None = typer.Option(None, help="Address to bind"),
    port: int | None = typer.Option(None, help="Port to bind"),
) -> None:
    ctx.obj = {"host": host, "port": port}
    if ctx.invoked_subcommand is None:
        run_server(host, port)


@cli.command()
def run(
    ctx: typer.Context,
    host: str | None = typer.Option(None, help="Address to bind"),
    port: int | None = typer.Option(None, help="Port to bind"),
) -> None:
    """Serve the REST API."""
    base = ctx.obj or {}
    resolved_host = host or base.get("host")
    resolved_port = port if port is not None else base.get("port")
    run_server(resolved_host, resolved_port)


def _load_schema_or_exit(path: Path | None) -> dict:
    try:
        return load_form_schema(path)
    except SchemaError as exc:
        for message in exc.errors:
            typer.echo(message, err=True)
        raise typer.Exit(code=1)


@cli.command("check-schema")
def check_schema(path: Path = typer.Argument(..., help="Form schema JSON file")) -> None:
    """Load a form schema file and report every problem in it."""
    schema = _load_schema_or_exit(path)
    typer.echo(f"OK: {schema['title']} ({len(schema['fields'])} fields)")


@cli.command()
def validate(
    data_path: Path = typer.Argument(..., help="Submission payload JSON file"),
    schema_path: Path | None = typer.Option(None, "--schema", help="Form schema JSON file"),
) -> None:
    """Run the submission check on a payload without storing it."""
    schema = _load_schema_or_exit(schema_path)
    try:
        payload = orjson.loads(data_path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as exc:
        typer.echo(f"cannot read payload {data_path}: {exc}", err=True)
        raise typer.Exit(code=2)
    if not isinstance(payload, dict):
        typer.echo("payload must be a JSON object", err=True)
        raise typer.Exit(code=2)

    result = validate_submission(schema, payload)
    typer.echo(dumps_json(result))
    if not result["isValid"]:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    cli()
