"""Caching Service Implementation.

Provides the in-memory CacheService: bounded size, per-entry TTL and
least-recently-used eviction, plus a periodic sweeper for expired entries.
Bounded Context: Cache Management
"""
