"""
Entry point for running roslynkit as a module.

Usage: python -m roslynkit [command] [options]
"""

from roslynkit.cli.parser import main

if __name__ == "__main__":
    main()
