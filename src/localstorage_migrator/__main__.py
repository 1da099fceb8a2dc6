"""Allow ``python -m localstorage_migrator``."""

from .cli import main

if __name__ == "__main__":
    main()
