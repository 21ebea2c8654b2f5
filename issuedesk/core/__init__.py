"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from issuedesk.core.exceptions import (
    ApplicationException,
    DomainException,
    RepositoryException,
    ConfigurationException,
    ValidationException,
    ResourceNotFoundException,
    ForbiddenException,
    InvalidTransitionException,
    AlreadyEscalatedException,
    NoOpChangeException,
)

__all__ = [
    "ApplicationException",
    "DomainException",
    "RepositoryException",
    "ConfigurationException",
    "ValidationException",
    "ResourceNotFoundException",
    "ForbiddenException",
    "InvalidTransitionException",
    "AlreadyEscalatedException",
    "NoOpChangeException",
]
