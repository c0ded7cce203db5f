#!/usr/bin/env python3
"""
Convenience shim to run zonedebrid from a source checkout.
Usage: python zonedebrid.py [--search QUERY|--check URL|--verify|--help]
"""

from zonedebrid.cli import main


if __name__ == "__main__":
    main()
