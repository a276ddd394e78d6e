"""Allow ``python -m deployctl``."""

from deployctl.app import main

if __name__ == "__main__":
    main()
