"""
Utilities Package

Helper functions used across the application:
- clock.py: Injectable wall-clock access and day arithmetic
- pagination.py: Page count math shared by list endpoints
"""
