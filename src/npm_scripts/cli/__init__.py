"""npm-scripts CLI module.

This module provides the command-line interface for npm-scripts, enabling users to:
    - Run a root package.json script with `npm-scripts root`
    - Run a workspace script with `npm-scripts workspace`
    - Run the script closest to a file with `npm-scripts buffer <path>`
    - Run any script under the project with `npm-scripts all`
"""
