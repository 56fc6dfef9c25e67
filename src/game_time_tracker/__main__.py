"""
Package entry point for python -m execution.

USAGE:
    python -m game_time_tracker                 # Run web server
    python -m game_time_tracker serve           # Run web server
    python -m game_time_tracker track valorant  # Terminal timer
    python -m game_time_tracker report          # Print report
"""

import sys

from game_time_tracker.cli import main

if __name__ == "__main__":
    sys.exit(main())
