"""
Endpoint subpackage for API v1.

Each module defines an APIRouter for one area (service records, slips,
service information).  The routers are aggregated in ``router.py``.
"""
