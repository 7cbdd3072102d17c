"""Operational scripts for motion content."""
