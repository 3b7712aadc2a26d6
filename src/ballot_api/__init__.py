"""Membership election service: phase control, phone verification, and ballot casting."""

__version__ = "0.1.0"
