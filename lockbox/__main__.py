"""Allow ``python -m lockbox``."""
from .cli import main

if __name__ == "__main__":
    main()
