"""auth/ -- Credential lifecycle: users, stores, tokens and the service.

Layer rule: auth/ imports stdlib, third-party libraries and core/ only.
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
