"""Command line entry for chatting with the back-office agents."""

from cli.console import main as run_console_cli


def main() -> int:
    """Run the terminal chat."""
    return run_console_cli()


if __name__ == "__main__":
    raise SystemExit(main())
