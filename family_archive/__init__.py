"""
Family Archive - Keep a family's people, documents, photos and relationships.

This package stores family members and the relationships between them,
reconstructs the family forest for visualization, and classifies uploaded
documents with OCR.
"""

__version__ = "0.1.0"
__author__ = "Family Archive Contributors"
