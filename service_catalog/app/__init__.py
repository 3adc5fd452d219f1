"""
CS-Cart catalog service package.

Turns the paginated, slow CS-Cart REST API into quickly retrievable product,
feature and order views, exposed as MCP tools:
- Caching: per-catalog JSON files with a TTL, per-feature variant files
- Enrichment: feature variants and product feature values joined client-side

Structure:
- app.main: tool registry, dispatch and stdio server wiring.
- app.adapters: HTTP client for the shop API.
- app.caching: Persistent catalog cache and variant store.
- app.catalog: Feature/product catalogs, variant resolution, product enrichment.
- app.orders: Order message formatting.
- app.domain: Records decoded from backend payloads.
"""
