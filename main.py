#!/usr/bin/env python3
"""bistro-pos entry point: python main.py [command...]"""

from bistro_pos.cli import main

if __name__ == "__main__":
    main()
