"""Allow ``python -m cert_exporter``."""

from cert_exporter.cli.main import main

main()
