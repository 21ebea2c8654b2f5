"""
Shared Kernel Module
====================

This module contains shared infrastructure used across all bounded contexts
(Issue Lifecycle and Analytics).

Architecture Pattern: Modular Monolith
- Each module (issues, analytics) is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add lifecycle or SLA business rules to the shared kernel.
"""

__version__ = "1.0.0"
