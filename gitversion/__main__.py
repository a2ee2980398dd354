from gitversion.cli import cli

cli()
