"""Offline synchronization layer.

This module tracks sync status and connectivity, and coordinates
snapshot creation and hybrid reads on top of the offline store.
"""
