"""CLI commands for npm-scripts.

This package contains the implementation of CLI commands:
    - scripts: root, workspace, buffer and all
    - version: Show version information
"""
