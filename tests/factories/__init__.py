"""Test data factories using polyfactory."""

from tests.factories.tenant import TenantCreateFactory


__all__ = ["TenantCreateFactory"]
