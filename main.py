#!/usr/bin/env python3
"""Main entry point for the holiday data pipeline."""

from holiday_pipeline.cli import cli

if __name__ == '__main__':
    cli()
