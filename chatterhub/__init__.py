"""
ChatterHub data core: persistent store, live queries and system-prompt resolution.
"""
__version__ = "0.3.0"
