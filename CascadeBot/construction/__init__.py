"""
CascadeBot.construction — build-site selection.

Public API
----------
    from CascadeBot.construction import BuildSiteCache
"""

from CascadeBot.construction.build_sites import BuildSiteCache

__all__ = [
    "BuildSiteCache",
]
