"""Tapboard — live beer dashboard for a tasting festival.

Aggregates beer/brewery metadata from the graph store, keeps a live
in-memory mirror of on-site ratings, pushes rating changes to connected
browsers and renders the filtered beer lists.
"""

__version__ = "0.1.0"
