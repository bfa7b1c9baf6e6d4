"""
Domain models — Pydantic types for the bootstrapper.

    from lapdev_bootstrap.core.models import Action, Receipt, TomlDocument, UnitDropIn
"""

from lapdev_bootstrap.core.models.action import Action, Receipt, ReceiptStatus
from lapdev_bootstrap.core.models.documents import Document, TomlDocument, UnitDropIn

__all__ = [
    # action.py
    "Action",
    # documents.py
    "Document",
    "Receipt",
    "ReceiptStatus",
    "TomlDocument",
    "UnitDropIn",
]
