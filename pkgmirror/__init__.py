"""
Local mirror and search index for a git-hosted package-manifest repository.
"""
