"""
Inbound HTTP adapter.
"""
