"""Entry point for running eftdoc as a module.

Usage:
    python -m eftdoc [command] [options]

Example:
    python -m eftdoc generate -i Model.edmx -c "Server=.;Database=Sales;Trusted_Connection=yes"
    python -m eftdoc check -i Model.edmx
"""

from eftdoc.cli import app

if __name__ == "__main__":
    app()
