"""
Lead Analytics Backend Package.

FastAPI service exposing the analytics dashboards of the lead-generation CRM:
location, source, pipeline, growth, overview KPIs, source breakdown,
timeline, funnel, heatmap, comparison, top performers and cost analysis.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, errors, and dependencies
    - models: Pydantic schemas and enums
    - services: Aggregation engine and dashboard view functions
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
