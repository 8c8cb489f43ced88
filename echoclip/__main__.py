"""CLI entry point for python -m echoclip"""
from echoclip.cli.commands import app

if __name__ == "__main__":
    app()
