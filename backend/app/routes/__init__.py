# Routes package init
"""
Docsmith Backend: API Routes Package
======================================

Route Inventory:
    - templates.py:  GET  /api/templates                      (display list)
                     GET  /api/templates/{id}                 (detail)
                     POST /api/templates                      (multipart upload)
                     GET  /api/templates/{id}/download        (original file)
    - documents.py:  GET  /api/documents                      (display list)
                     GET  /api/documents/{id}                 (detail)
                     POST /api/documents/generate             (render template)
                     GET  /api/documents/{id}/download        (regenerated file)
                     GET  /api/documents/template/{id}        (by template)
    - files.py:      GET  /api/files/{bucket}/{path}          (local blob backend only)
    - health.py:     GET  /health                             (dependency status)

Routes are thin: extract request data, call a service, return its schema.
Business logic and error wrapping live in the services.
"""
