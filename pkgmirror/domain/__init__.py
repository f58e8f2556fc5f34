"""
Domain types shared by the sync engine, the query engine and the HTTP layer.
"""
