"""
HTTP API for ChatterHub.
"""
