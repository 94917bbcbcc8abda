"""Vendor clients and domain services."""
