"""
Test suite for shadowsync.

- Unit tests for descriptors, diffing, SQL rendering, execution and the CLI
- End-to-end convergence tests against an in-memory database
"""
