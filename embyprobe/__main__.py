"""Allow ``python -m embyprobe``."""

from embyprobe.cli import main

main()
