"""
In-memory package index.
"""
