"""Business logic services.

Services handle: verse generation and caching, hourly delivery scheduling,
push dispatch and device registration.
"""
