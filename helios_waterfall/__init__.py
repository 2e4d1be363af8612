"""
Helios Waterfall - Lending Risk Decision Engine

A FastAPI-based service that scores bank-statement transactions with the
internal Helios Engine, decides whether paid external verification is
worth its cost, and consolidates everything into a final assessment.
"""

__version__ = "0.1.0"
