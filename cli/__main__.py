"""
Entry point for running the Carbon client as a module.

Usage:
    python -m cli info --base-uri https://host/carbon/
    python -m cli run --user guest --password guest --top age --side region
"""

from .commands import run

if __name__ == "__main__":
    run()
