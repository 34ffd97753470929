"""Retry-free resilience helpers: error classes and session locks."""
