"""auth/ -- Authentication and authorization package for Postgate.

Layer rule: auth/ imports from core/ and third-party libraries only.
It does NOT import from api/ or blog/ at runtime.
api/ and blog/ import from auth/, not the other way around.
"""
