# Middleware package init
"""
DevCamper Backend — Middleware Package
========================================

Chain (outermost first):
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

The request ID is assigned before the access log runs so every log line
for the request, including the access line, carries it.
"""
