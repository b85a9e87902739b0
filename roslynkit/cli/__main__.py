"""
Entry point for running the roslynkit CLI as a module.

Usage: python -m roslynkit.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
