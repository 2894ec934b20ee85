"""Allow ``python -m smartpath``."""
from smartpath.cli.main import main

if __name__ == "__main__":
    main()
