"""store/ -- Key/secret association storage for gauth.

Two namespaces (loc_auth: host -> api_key, secrets: ident -> token) built on
one generic pair table with two backends (in-memory and SQLAlchemy).

Layer rule: store/ imports only stdlib + SQLAlchemy. It does NOT import from
core/ or main.py. Tables and stores never log; only schema setup does.
"""
