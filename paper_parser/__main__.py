"""
Module entry point for: python -m paper_parser

Allows running the parser directly as a module:
    python -m paper_parser parse <file> [options]
    python -m paper_parser batch <directory> [options]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
