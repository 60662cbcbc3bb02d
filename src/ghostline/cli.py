"""CLI entry point for ghostline. Uses Click for argument parsing."""

from __future__ import annotations

import logging
import sys

import click

from ghostline.config import EditorOptions
from ghostline.editor import edit
from ghostline.providers import History, combine_providers, history_provider, word_list_provider

DEFAULT_WORDS = ("red", "orange", "yellow", "green", "blue", "indigo", "violet")


def _has_tty() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


@click.command()
@click.option(
    "--word",
    "-w",
    "words",
    multiple=True,
    help="Word offered as a suggestion (repeatable). Defaults to the colors of the rainbow.",
)
@click.option("--prompt", default="Type here: ", show_default=True, help="Prompt text")
@click.option("--once", is_flag=True, help="Read a single line and exit")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="warning",
    show_default=True,
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write logs here (logging is off without it, to keep the edit line clean)",
)
def main(words, prompt, once, log_level, log_file):
    """Read lines with inline suggestions.

    Tab accepts the grey suggestion, Up/Down cycle alternatives, Ctrl with
    arrows or Backspace/Delete works word by word. Type "exit" to quit.
    """
    if log_file:
        logging.basicConfig(
            filename=log_file,
            level=getattr(logging, log_level.upper()),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    if not _has_tty():
        click.echo("ghostline needs an interactive terminal", err=True)
        sys.exit(1)

    try:
        options = EditorOptions.from_env()
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    history = History(max_entries=100)
    provider = combine_providers(
        history_provider(history),
        word_list_provider(words or DEFAULT_WORDS),
    )

    while True:
        try:
            line = edit(prompt, provider, options=options)
        except (EOFError, KeyboardInterrupt):
            click.echo()
            break

        if line.strip() == "exit":
            break
        history.add(line)
        click.echo(f"You typed: {line}")
        if once:
            break


if __name__ == "__main__":
    main()
