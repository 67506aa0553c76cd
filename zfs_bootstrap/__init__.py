"""Idempotent bootstrap of an encrypted ZFS pool on Fedora."""

__version__ = "0.1.0"
