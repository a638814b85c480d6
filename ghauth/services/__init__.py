"""
Service layer for ghauth.

Contains the logic that orchestrates domain objects and infrastructure:
- TokenIssuer: encrypted key -> assertion -> installation -> access token
- ReconciliationEngine: repository list -> clones and updates on disk

Services are the primary API for commands to use.
"""

from .issuance_service import (
    InstallationResolver,
    TokenExchanger,
    TokenIssuer,
    IssuanceResult,
)
from .reconcile_service import ReconciliationEngine, classify

__all__ = [
    'InstallationResolver',
    'TokenExchanger',
    'TokenIssuer',
    'IssuanceResult',
    'ReconciliationEngine',
    'classify',
]
