"""
DemoScope CLI Entry Point

Allows running the package as a module: python -m demoscope
"""

from demoscope.cli import main

if __name__ == "__main__":
    main()
