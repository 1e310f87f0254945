"""Agency Spine - table-driven data access for a real-estate agency back office.

- agency_spine.core: settings, logging, errors, dialects, adapters, store client
- agency_spine.resources: Resource Access Protocol (generic CRUD over named tables)
- agency_spine.client: client cache & mutation layer
- agency_spine.api: FastAPI boundary
- agency_spine.cli: typer command line
"""

__version__ = "0.1.0"
