"""
HTTP layer

Thin FastAPI routers: parse the request, call a Manager, map exceptions
to status codes.
"""
