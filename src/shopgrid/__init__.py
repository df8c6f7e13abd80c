"""shopgrid - multi-tenant storefront backend with schema-per-tenant isolation."""

__version__ = "0.1.0"
