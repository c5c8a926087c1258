"""bistro-pos: a command line point of sale for small restaurants"""

__version__ = "2.0.0"
