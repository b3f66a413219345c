"""sdkforge CLI: Typer-based command-line interface.

Provides the ``sdkforge`` command with subcommands for setting up and
restoring a workspace, generating and installing development certificates,
signing files, and printing workspace paths.

All output uses Rich for formatted terminal display.
"""
