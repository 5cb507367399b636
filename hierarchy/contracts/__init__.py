"""
Contracts Module

This module defines the explicit interfaces and data transfer objects
shared by every layer of the hierarchy package. Layers exchange these
types only; no layer imports implementation details from another layer.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses)
2. Structural problems are Error values, not exceptions
3. Entities are opaque: anything hashable and comparable for equality
4. All timestamps use UTC and are never mutated
"""
