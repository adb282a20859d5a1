"""
FlowScribe package entry point.

Allows running flowscribe as a module:
    python -m flowscribe
"""

from flowscribe.cli import main

if __name__ == "__main__":
    main()
