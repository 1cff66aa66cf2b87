"""core/ -- Application kernel for gauth (configuration).

Layer rule: core/ imports only stdlib + third-party libraries. store/ and
main.py may import from core/; core/ never imports from them.
"""
