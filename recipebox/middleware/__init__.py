# Middleware package init
"""
RecipeBox Backend — Middleware Package
========================================

Middleware Chain (request direction):
    Request → [CORS] → [Request ID] → [Logging] → [GZip] → [Access Control] → Route Handler

    1. CORS first so preflights and error responses carry CORS headers
    2. Request ID so every later log line can be correlated
    3. Logging records status and duration, including 403 rejections
    4. Access Control last, right before routing
"""
