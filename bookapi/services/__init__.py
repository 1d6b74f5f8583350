"""
Services Package

Business logic kept apart from HTTP handling:
- books.py: Book service (rules, role checks, caching policy)
- cache.py: cache stores and @cacheable/@cache_evict decorators
- security.py: JWT verification and the caller Principal
- tasks.py: bounded background executor
- rate_limiter.py: slowapi limiter
"""
