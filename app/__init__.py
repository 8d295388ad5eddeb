"""
Hex Loop - Command line entry points.
"""
