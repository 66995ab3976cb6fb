"""
Festival Service Component Tests

Service-level tests over the in-memory store with mocked collaborators.
"""
