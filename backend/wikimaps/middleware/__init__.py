# Middleware package init
"""
WikiMaps Backend: Middleware Package
====================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Access Logging] → [GZip] → [Session] → Routes

    - Request ID runs first so every later log line carries the ID
    - Access logging sees the final status, including error pages
    - Session loads the signed cookie before routing and writes Set-Cookie
      on the way out
"""
