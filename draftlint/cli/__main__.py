"""Allow ``python -m draftlint.cli``."""

from . import main

if __name__ == "__main__":
    main()
