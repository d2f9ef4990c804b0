"""
Serving Layer

Read-only HTTP access to the gold layer.
"""
