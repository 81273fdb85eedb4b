"""
__main__.py -- entry point when running `python -m pymdat`.
It delegates to our CLI's main() function.
"""

from pymdat.cli import main

if __name__ == "__main__":
    main()
