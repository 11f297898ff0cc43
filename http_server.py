#!/usr/bin/env python3
"""
playmix HTTP Server Runner
"""

import sys

from playmix.interfaces.cli import main


if __name__ == '__main__':
    sys.exit(main(['http', *sys.argv[1:]]))
