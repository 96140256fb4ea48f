"""Entry point for running the migrator as a module.

Usage:
    python -m cmodel_migrator analyze objects/ analysis/
    python -m cmodel_migrator generate analysis/ objects/
"""

from .cli import main

if __name__ == "__main__":
    main()
