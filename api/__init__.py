"""api/ -- HTTP surface for Postgate.

Layer rule: api/ imports from auth/, blog/ and core/. Nothing imports from api/
except the top-level asgi.py and main.py.
"""
