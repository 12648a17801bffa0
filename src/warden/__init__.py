"""
WARDEN - Pluggable Vulnerability Scanning Orchestrator

Runs a set of independent detector capabilities concurrently against a
target, tolerates individual detector failure, throttles how many scans
start per second, and summarizes the findings by severity.

Copyright (c) 2025
Licensed under MIT License
"""

__version__ = "1.0.0"
__author__ = "WARDEN Team"
__status__ = "Development"
