"""
Schemas module - Request/Response schemas for API endpoints.

Schemas are the API contract (what client sends/receives). Rows coming back
from the database service are plain dicts and are validated into these at
the route layer.
"""
