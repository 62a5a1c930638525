"""Storage and versioning layer.

This module persists immutable cleaned dataset versions and catalogs.
It powers record loading, querying, issue manifests and export.
"""
