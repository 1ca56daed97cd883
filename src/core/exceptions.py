"""Hiérarchie commune des exceptions du domaine.

Chaque module métier dérive ses propres exceptions de l'une des cinq classes
ci-dessous; le routeur n'a besoin que de ``status_code`` et ``code`` pour
produire la réponse HTTP.
"""
from typing import Any, Optional


class DomainException(Exception):
    """Classe de base pour toutes les exceptions métier."""
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class ValidationException(DomainException):
    """Entrée invalide (quantité, date, liste vide...)."""
    status_code = 400
    code = "VALIDATION_ERROR"


class ConflictException(DomainException):
    """Conflit de version ou violation d'unicité."""
    status_code = 409
    code = "CONFLICT"


class NotFoundException(DomainException):
    """Ressource référencée inexistante."""
    status_code = 404
    code = "NOT_FOUND"


class ImmutableStateException(DomainException):
    """Modification interdite par l'état courant de l'entité."""
    status_code = 400
    code = "IMMUTABLE_STATE"


class InternalException(DomainException):
    """Violation d'invariant ou échec inattendu de la persistance."""
    status_code = 500
    code = "INTERNAL_ERROR"
