"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: CAP namespaces, document extension, coordinate bounds
- exceptions: Custom exception hierarchy
"""
