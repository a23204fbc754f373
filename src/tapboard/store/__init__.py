"""Backing store adapters — Neo4j (HTTP) for metadata, Redis for live state.

Learn: Both adapters translate client-library failures into
BackingStoreError so services never see redis/httpx exceptions.
"""
