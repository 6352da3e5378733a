"""Remote catalog access.

This module reads the five live catalog collections from the hosted
backend and tracks which of them have finished loading.
"""
