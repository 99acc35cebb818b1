"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants, source identifiers, endpoint defaults
- exceptions: Custom exception hierarchy
- geometry: Region descriptor computation (bounds, center, area)
"""
