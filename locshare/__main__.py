"""Run the Locshare server: ``python -m locshare``."""

from locshare.server import main

if __name__ == "__main__":
    main()
