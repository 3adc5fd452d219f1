"""
Catalog services: feature catalog with variant resolution, product catalog
with search, and single-product enrichment.
"""
