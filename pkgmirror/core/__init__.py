"""
Configuration and dependency wiring.
"""
