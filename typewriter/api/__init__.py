"""
HTTP API routers for the typewriter service
"""
