"""
HTTP routes over the package service.
"""
