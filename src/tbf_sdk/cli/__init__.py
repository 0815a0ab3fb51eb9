"""
TBF SDK Command-Line Interface
==============================

This package provides command-line tools for the TBF SDK:

- **tbfhdr**: Wrap an application binary in a TBF header and check
  header checksums

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["tbfhdr"]
