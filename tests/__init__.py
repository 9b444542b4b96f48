"""
Bihari Delicacies Test Suite

Tests are organized into:
- unit/: Unit tests for storage, query, auth, uploads and rate limiting
- integration/: HTTP tests against the full app
"""
