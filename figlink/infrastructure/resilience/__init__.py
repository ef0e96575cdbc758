"""API Resilience Implementations.

Contains the sliding-window rate limiter that paces outbound calls to the
design API.
Bounded Context: API Resilience
"""
