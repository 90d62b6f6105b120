"""
HTTP API for the SNAKEPILL game backend.
"""
