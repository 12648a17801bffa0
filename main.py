#!/usr/bin/env python3
"""
WARDEN - Pluggable Vulnerability Scanning Orchestrator

Main entry point when running from a source checkout.

Usage:
    python main.py scan --url https://example.com
    python main.py serve --port 3000
"""

from warden.cli import cli


if __name__ == '__main__':
    cli()
