from __future__ import annotations

import json
from typing import Any

import httpx
import typer
from blackbeard_client import (
    BlackbeardError,
    ClientBuilder,
    DecodeError,
    ErrorResponse,
    StdLogger,
    body_to_value,
    extract_paginated,
    new_multipart_body,
)
from blackbeard_client.decode import is_success

from .. import console

CALL_USAGE = """\
Usage:
  blackbeard call GET /posts --base-path http://localhost --port 3000
  blackbeard call POST /posts -d '{"title": "x"}' -H 'Authorization: Bearer ...'
  blackbeard call POST /upload --field name=report --file doc=./report.pdf
"""

METHODS = ("GET", "POST", "PUT", "DELETE")


def _pairs(values: list[str] | None, sep: str, option: str) -> list[tuple[str, str]]:
    out: list[tuple[str, str]] = []
    for raw in values or []:
        name, found, value = raw.partition(sep)
        if not found or not name.strip():
            raise typer.BadParameter(f"expected NAME{sep}VALUE, got '{raw}'", param_hint=option)
        out.append((name.strip(), value.strip()))
    return out


def _query(values: list[str] | None) -> dict[str, list[str]]:
    query: dict[str, list[str]] = {}
    for name, value in _pairs(values, "=", "--query"):
        query.setdefault(name, []).append(value)
    return query


def _builder(
        *,
        base_path: str | None,
        default_base_path: bool,
        port: int,
        api_version: str,
        service: str,
        headers: list[tuple[str, str]],
        token: str | None,
        api_key: str,
        timeout: float,
) -> ClientBuilder:
    builder = ClientBuilder().with_logger(StdLogger())
    if default_base_path:
        builder.with_default_base_path()
    if base_path:
        builder.with_base_path(base_path)
    if not builder.base_path:
        raise typer.BadParameter("provide --base-path or --default-base-path", param_hint="--base-path")
    builder.with_port(port).with_version(api_version).to_service(service)
    builder.with_timeout(timeout).with_api_key(api_key)
    for name, value in headers:
        builder.add_header(name, value)
    if token:
        builder.with_auth_header(f"Bearer {token}")
    return builder


def _send(client, method: str, path: str, *, data: str | None, fields, files, query) -> httpx.Response:
    if fields or files:
        if method != "POST":
            raise typer.BadParameter("--field/--file require POST", param_hint="method")
        return client.multipart(path, new_multipart_body(dict(fields), dict(files)), query)
    body: Any = None
    if data is not None:
        try:
            body = json.loads(data)
        except ValueError as e:
            raise typer.BadParameter(f"not valid JSON: {e}", param_hint="--data")
    if method == "GET":
        return client.get(path, query, body=body)
    if method == "POST":
        return client.post(path, body, query)
    if method == "PUT":
        return client.put(path, body, query)
    return client.delete(path, body, query)


def _print_body(response: httpx.Response, *, json_out: bool) -> None:
    if not response.content:
        return
    try:
        value = body_to_value(response)
    except DecodeError:
        console.print_text(response.text)
        return
    if json_out:
        typer.echo(json.dumps(value, ensure_ascii=False))
    else:
        console.print_body(value)


def call(
        method: str = typer.Argument(..., help="HTTP method: GET, POST, PUT or DELETE."),
        path: str = typer.Argument("/", help="Path appended to the composed base URI."),
        base_path: str | None = typer.Option(None, "--base-path", help="Scheme, host and optional prefix."),
        default_base_path: bool = typer.Option(False, "--default-base-path", help="Read base path from $BASE_PATH."),
        port: int = typer.Option(0, "--port", help="Port (0 keeps the base path as is)."),
        api_version: str = typer.Option("", "--api-version", help="API version segment."),
        service: str = typer.Option("", "--service", help="Service segment."),
        header: list[str] | None = typer.Option(None, "--header", "-H", help="'Name: value', repeatable."),
        query: list[str] | None = typer.Option(None, "--query", "-q", help="name=value, repeatable."),
        data: str | None = typer.Option(None, "--data", "-d", help="JSON request body."),
        field: list[str] | None = typer.Option(None, "--field", help="Multipart form field name=value."),
        file: list[str] | None = typer.Option(None, "--file", help="Multipart file name=path."),
        api_key: str = typer.Option("", "--api-key", help="Sent as the 'key' query parameter."),
        token: str | None = typer.Option(None, "--token", help="Bearer token."),
        timeout: float = typer.Option(15.0, "--timeout", help="Seconds, 0 disables the timeout."),
        paginated: bool = typer.Option(False, "--paginated", help="Render the records of a paginated response."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    method = method.strip().upper()
    if method not in METHODS:
        raise typer.BadParameter(f"unsupported method '{method}'", param_hint="method")

    try:
        builder = _builder(
            base_path=base_path,
            default_base_path=default_base_path,
            port=port,
            api_version=api_version,
            service=service,
            headers=_pairs(header, ":", "--header"),
            token=token,
            api_key=api_key,
            timeout=timeout,
        )
        with builder.build() as client:
            response = _send(
                client,
                method,
                path,
                data=data,
                fields=_pairs(field, "=", "--field"),
                files=_pairs(file, "=", "--file"),
                query=_query(query),
            )
            if paginated:
                records = extract_paginated(response, list[Any])
                if json_out:
                    typer.echo(json.dumps(records, ensure_ascii=False))
                else:
                    console.print_records(records, title=f"{method} {path}")
                return
    except ErrorResponse as e:
        console.print_failure(str(e))
        raise typer.Exit(code=1)
    except BlackbeardError as e:
        console.print_failure(str(e))
        raise typer.Exit(code=2)

    success = is_success(response)
    if not json_out:
        console.print_status(response.status_code, response.reason_phrase, success=success)
    _print_body(response, json_out=json_out)
    if not success:
        raise typer.Exit(code=1)
