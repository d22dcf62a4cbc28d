"""Entry point for ``python -m campus_planner``."""

from .cli.main import main

if __name__ == "__main__":
    main()
