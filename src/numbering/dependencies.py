from typing import Annotated

from fastapi import Depends

from src.database import SessionDep
from src.numbering.service import EntityNumberGenerator

def get_number_generator(session: SessionDep) -> EntityNumberGenerator:
    """Le générateur partage la session (et donc la transaction) du service appelant."""
    return EntityNumberGenerator(session)

NumberGeneratorDep = Annotated[EntityNumberGenerator, Depends(get_number_generator)]
