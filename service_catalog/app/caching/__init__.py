"""
Catalog caching package.

Provides the file-backed catalog cache (one payload per file with a TTL
checked by the caller) and the per-feature variant store, which never
expires and is invalidated only explicitly.
"""
