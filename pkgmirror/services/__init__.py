"""
Sync orchestration, mirroring, parsing and querying.
"""
