"""Allow running as `python -m quizdeck`."""

from quizdeck.cli import main

main()
