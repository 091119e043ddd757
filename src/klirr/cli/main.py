"""Main CLI entry point."""

import click

from klirr.config import load_config
from klirr.logging_setup import setup_logging
from klirr.storage.factories import create_file_store

# Import and register all commands at module level
from klirr.cli.commands import data, email_cmd, invoice


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    help="Directory holding the data records (overrides KLIRR_DATA_DIR environment variable)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx, data_dir: str | None, verbose: bool):
    """Klirr - Monthly invoice generator.

    Creates invoice PDFs for a recurring service or for recorded expenses,
    with invoice numbers, working days and exchange rates worked out for
    you, and optionally emails them.
    """
    ctx.ensure_object(dict)

    # Read the environment once, only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        config = load_config(data_dir=data_dir)
        setup_logging(config.log_level, verbose)
        ctx.obj.setdefault("config", config)
        ctx.obj.setdefault("store", create_file_store(config.data_dir))


# Register all commands
invoice.register_commands(cli)
data.register_commands(cli)
email_cmd.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
