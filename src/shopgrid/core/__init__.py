"""Core services and cross-cutting concerns.

Submodules are imported directly (``shopgrid.core.database``,
``shopgrid.core.tenancy``, ...) to keep this package import-light.
"""
