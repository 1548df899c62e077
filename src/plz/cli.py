# cli.py
from __future__ import annotations

import sys

import click

from plz import __version__
from plz.config import CONFIG_ENV_VAR, discover_config, load_config
from plz.errors import EXIT_CANCELLED, EXIT_FAILURE, MissingSubcommand, PlzError
from plz.resolver import CommandTree
from plz.runner import Executor
from plz.ui.console import Console, set_console


@click.command(
    context_settings={
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
        "help_option_names": ["-h", "--help"],
    }
)
@click.option(
    "--config",
    "-c",
    "config_path",
    default=None,
    envvar=CONFIG_ENV_VAR,
    help="Config file (defaults to the nearest plz.yaml)",
)
@click.option("--list", "list_commands", is_flag=True, default=False, help="List available commands")
@click.option("--quiet", "-q", is_flag=True, default=False, help="Do not echo actions before running them")
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.version_option(__version__, prog_name="plz")
@click.argument("request", nargs=-1, type=click.UNPROCESSED)
def cli(config_path, list_commands, quiet, debug, request):
    """plz: run the commands defined in plz.yaml.

    \b
    plz <command> [<subcommand> ...] [args...] [-- name=value ...]
    """
    console = Console(debug=debug, quiet=quiet)
    set_console(console)

    try:
        path = discover_config(config_path)
        console.print_debug(f"using config {path}")
        config = load_config(path)
        tree = CommandTree(config)

        if list_commands or not request:
            console.print_commands(config.root, config.description)
            return

        try:
            resolved = tree.resolve_request(request)
        except MissingSubcommand as e:
            if "--help" in request or "-h" in request:
                node = tree.locate(e.path)[-1]
                console.print_commands(node, node.description)
                return
            raise

        exit_code = Executor(tree, console=console).run(resolved)
        if exit_code != 0:
            sys.exit(exit_code)

    except PlzError as e:
        console.print_plz_error(e)
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(EXIT_CANCELLED)
    except (click.exceptions.Exit, click.ClickException, click.Abort):
        raise
    except Exception as e:
        console.print_exception(e)
        sys.exit(EXIT_FAILURE)


def main() -> None:
    cli(prog_name="plz")


if __name__ == "__main__":
    main()
