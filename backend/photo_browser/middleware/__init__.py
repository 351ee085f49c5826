# Middleware package init
"""
Photo Browser API — Middleware Package
========================================

Middleware Chain (order matters!):
    Request → [Security Headers] → [CORS] → [Request ID] → [Logging]
            → [API Rate Limit] → Router → route dependencies
              (tier rate limit → authentication → schema validation) → handler

Starlette runs middleware in reverse order of registration, so `create_app()`
adds them last-to-first. Responses travel back through the same chain: the
request ID header is attached after logging, and security headers are applied
to every response, errors included.
"""
