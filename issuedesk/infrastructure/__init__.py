"""
Shared Infrastructure
=====================

Cross-cutting infrastructure used by the bounded contexts (database engine
and session management).
"""
