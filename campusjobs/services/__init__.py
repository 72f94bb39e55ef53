"""
Services module - business rules shared between routes.
"""
