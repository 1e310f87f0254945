"""API routers: health, tables, query."""
