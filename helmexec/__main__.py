"""
Entry point for the `helmexec` command-line interface.

Allows ``python -m helmexec`` as an alternative to the console script.
"""


def main():
    """Main entry point for the helmexec CLI."""
    from .cli import cli

    cli()


if __name__ == "__main__":
    main()
