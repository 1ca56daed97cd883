"""Exceptions spécifiques à la numérotation des entités."""
from src.core.exceptions import InternalException, ValidationException


class UnknownEntityTypeException(ValidationException):
    def __init__(self, entity_type: object):
        super().__init__(f"Unknown entity type: {entity_type!r}")
        self.entity_type = entity_type


class SequenceAllocationException(InternalException):
    """La base n'a pas attribué d'identité à la ligne de séquence insérée."""
    pass
