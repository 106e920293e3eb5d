from __future__ import annotations

import typer

from .commands import call_cmd
from .logging_ import setup_logging


def _build_app() -> typer.Typer:
    app = typer.Typer(
        name="blackbeard",
        help="blackbeard: issue one REST call through the client library.",
        no_args_is_help=True,
    )
    app.command("call", help="Send one request.\n\n" + call_cmd.CALL_USAGE)(call_cmd.call)

    @app.callback()
    def _main(
            verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logs."),
    ):
        setup_logging(verbose)

    return app


app = _build_app()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
