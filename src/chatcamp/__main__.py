"""Allow ``python -m chatcamp``."""

from chatcamp.cli import main

if __name__ == "__main__":
    main()
