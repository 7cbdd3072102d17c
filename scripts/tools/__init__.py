"""
Content Tools Package

This package provides command-line tooling for the motion content tables.

Core modules:
- content_cli: Lint, coverage, manifest and scoring commands
"""

__version__ = "1.0.0"
