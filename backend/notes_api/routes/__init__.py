# Routes package init
"""
Notes API Backend: API Routes Package
======================================

Route Inventory:
    - notes.py:   GET    /api/notes/search?query=   (pattern search)
                  GET    /api/notes                 (list all)
                  GET    /api/notes/{id}            (get one)
                  POST   /api/notes                 (create, multipart or JSON)
                  PUT    /api/notes/{id}            (update)
                  DELETE /api/notes/{id}            (delete)
    - health.py:  GET    /health                    (service health check)

Routes stay thin: extract input, call NoteService, return the model.
"""
