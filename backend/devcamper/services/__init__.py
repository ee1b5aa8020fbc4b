# Services package init
"""
DevCamper Backend — Services Layer
====================================

What:  Business rules between the HTTP routes and the database.
How:   Each service is a plain class with a module-level singleton; methods
       take the request's AsyncSession and return response schemas.

Service Inventory:
    - QueryService:     filter / select / sort / paginate for list endpoints
    - BootcampService:  bootcamp CRUD, radius search, photo upload
    - CourseService:    course CRUD and the bootcamp average-cost aggregate
    - GeocoderService:  address and zipcode lookup (Nominatim)
    - FileService:      photo validation and storage
"""
