# Middleware package init
"""
Notes API Backend: Middleware Package
======================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID first: every later log line can carry the correlation id
    2. Logging: method, path, status and duration once the response exists
"""
