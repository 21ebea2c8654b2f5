"""
Infrastructure Layer
=====================

Low-level technical concerns:
- Logging setup
- Time source
"""
