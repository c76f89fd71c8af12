from dialectics.cli.main import cli

cli()
