"""
Service layer.

Each module encapsulates one concern of the service desk: querying the
record snapshot, lifecycle validation, slip numbering, slip rendering
and talking to the remote record store.  ``ServiceRecordService`` ties
them together for the API handlers, which stay free of business logic.
"""
