# Services package init
"""
Docsmith Backend: Services Layer
==================================

Service Inventory:
    - TemplateService: list / get / upload / download templates
    - DocumentService: list / get / generate / download / list-by-template

Collaborators (used by the services, each behind a small interface):
    - MetadataRepository:       Template and Document rows (async SQLAlchemy)
    - BlobStorage (abstract):   bucket + filename object store
        - SupabaseStorage:      Supabase Storage REST API via httpx
        - LocalBlobStorage:     files under STORAGE_ROOT via aiofiles
    - DocumentProcessor (abstract): placeholder extraction, rendering, PDF
        - OfficeDocumentProcessor:  python-docx, openpyxl, LibreOffice
"""
