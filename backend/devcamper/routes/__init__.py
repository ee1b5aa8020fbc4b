# Routes package init
"""
DevCamper Backend — API Routes Package
========================================

Route Inventory (paths relative to API_PREFIX, default /api/v1):
    - bootcamps.py:  /bootcamps, /bootcamps/{id}, /bootcamps/{id}/photo,
                     /bootcamps/radius/{zipcode}/{distance}
    - courses.py:    /courses, /courses/{id}, /bootcamps/{bootcamp_id}/courses
    - files.py:      /uploads/{filename}            (no prefix)
    - health.py:     /health                        (no prefix)

Routes stay thin: parse the request, call a service, wrap the result in the
`{success, ...}` envelope. Errors propagate to the handlers in main.py.
"""
