"""blog/ -- Post and user persistence for Postgate.

Layer rule: blog/ may import from core/ and auth/ (domain models and the
password hasher). It does NOT import from api/. api/ imports from blog/.
"""
