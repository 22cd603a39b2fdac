#!/usr/bin/env python3
"""
Main entry point for the intake access layer
"""

import sys

from intake_access.main import cli

if __name__ == "__main__":
    sys.exit(cli())
