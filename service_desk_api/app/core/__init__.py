"""
Core infrastructure: settings, logging setup and the exception types
shared by the service layer and the HTTP endpoints.
"""
