"""Living Word API - daily verse generation, caching and timezone-aware push delivery."""
