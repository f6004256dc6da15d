"""Models Package.

Pydantic models describing conversion requests and results.
"""
