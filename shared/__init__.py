"""
Shared utilities for the CS-Cart catalog access layer.

This package aggregates common building blocks consumed by the services:

- config: Shop configuration via pydantic-settings
- logging: Structured logging with request correlation
- errors: Canonical error types and responses

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service_* packages into shared/.
"""
