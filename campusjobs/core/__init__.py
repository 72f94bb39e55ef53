"""
Core module - configuration, authentication, validation and error types.
"""
