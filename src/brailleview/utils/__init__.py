"""Shared utilities for brailleview."""
