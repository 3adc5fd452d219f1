"""
Domain records for the catalog service.

Backend payloads are decoded into these records at the adapter boundary so
services never deal with raw, loosely typed shapes.
"""
