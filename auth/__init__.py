"""auth/ -- Admin authentication package for the Intelligencer.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/, web/, or content/.
api/ and web/ import from auth/, not the other way around.
"""
