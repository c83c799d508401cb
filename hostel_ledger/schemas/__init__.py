"""Pydantic request and response schemas, grouped by resource."""
