"""Application interfaces (ports): service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from tripzi.infrastructure or tripzi.api.
"""

from tripzi.application.interfaces.services import IAccountWipeService

__all__ = ["IAccountWipeService"]
