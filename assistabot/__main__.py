"""Allow ``python -m assistabot``."""

from .app import main


main()
