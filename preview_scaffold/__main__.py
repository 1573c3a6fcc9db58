"""Allow ``python -m preview_scaffold``."""

from preview_scaffold.command import main

main()
