"""
Revenue Kernel

Shared foundation for the revenue recognition core:
- Typed, coded exceptions
- Structured JSON logging with request-scoped context
- Immutable date and contract value objects
- Injectable clock
"""

__version__ = "0.1.0"
