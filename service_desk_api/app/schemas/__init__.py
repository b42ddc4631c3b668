"""
Pydantic schema definitions.

``service_record`` holds the record shape as it is read from the
remote store, ``intake`` the request payloads and validation results
of the write path, and ``query`` the parameters of the listing view.
"""
