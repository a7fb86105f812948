"""
Core: settings, logging setup, and the shared error type.
"""
