"""Offline storage layer.

This module persists catalog snapshots and sync status in a primary
SQLite store with a flat JSON fallback store.
"""
