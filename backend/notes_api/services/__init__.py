# Services package init
"""
Notes API Backend: Services Layer
==================================

Service Inventory:
    - FileService: attachment validation and Cloudinary upload
    - NoteService: note CRUD, search, and the create workflow
      (decode → upload → insert)

Both are constructed in `create_app()` from the application Settings.
"""
