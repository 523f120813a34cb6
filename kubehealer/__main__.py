from kubehealer.cli.main import cli

cli()
