"""
RerunTV Test Suite

Test Categories:
- unit/: Fast, isolated unit tests
- integration/: HTTP API tests against the FastAPI app
- fixtures/: Shared test data
"""
