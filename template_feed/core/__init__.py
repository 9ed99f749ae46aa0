"""
Core resilience primitives: HTTP client, retry policy, circuit breaker,
cache store and the error taxonomy they share.
"""
