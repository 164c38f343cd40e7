import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from close_reading.cli.annotations import annotations_app
from close_reading.cli.diff import diff

app = typer.Typer(
    name="close-reading",
    help="Close Reading CLI: annotate code line by line and compare versions.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def root(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output.")] = False,
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[RichHandler(show_path=False)])


app.command("diff")(diff)
app.add_typer(annotations_app, name="annotations")


def main() -> None:
    app()
