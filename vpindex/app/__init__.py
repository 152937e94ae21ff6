"""Application layer for vpindex.

Domain code depends on the port interfaces defined here, never on concrete
metric implementations supplied by callers.
"""
