#!/usr/bin/env python3
"""
carbon-client: Carbon web service session runner

Authenticates to a Carbon web service, opens a job, activates its first
variable tree, requests cross-tabulation reports, then closes the job and
ends the session.

Usage:
    python carbon-client.py run --user guest --password guest --top age --side region

This file is a thin wrapper around the cli package.
"""

from cli.commands import run

if __name__ == "__main__":
    run()
