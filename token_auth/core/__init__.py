"""
Core configuration, security primitives, persistence and middleware.
"""
