#!/usr/bin/env python3
"""
Main entry point for the Typer-based askai CLI.

This delegates to the UI layer in askai.ui.cli to keep the
console script mapping stable.
"""

from askai.ui.cli import run as askai


if __name__ == "__main__":
    askai()
