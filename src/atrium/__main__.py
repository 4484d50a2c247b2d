"""Allow ``python -m atrium`` for scheduled-task entrypoints."""

from .cli import main

if __name__ == "__main__":
    main()
