"""
Shared Layer - Cross-Cutting Concerns
Configuration, logging, error contract, persistence plumbing and auth helpers
"""
