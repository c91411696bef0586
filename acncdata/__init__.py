"""
acncdata - ACNC Annual Information Statement history.

Imports the yearly ACNC AIS exports into a normalized SQLite store and
answers search and aggregation queries over it.
"""

__version__ = "0.1.0"
