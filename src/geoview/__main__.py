"""Command-line interface."""
from geoview.main import main

if __name__ == "__main__":
    main()
