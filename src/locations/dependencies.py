from typing import Annotated

from fastapi import Depends

from src.database import SessionDep
from src.locations.repositories import SQLAlchemyLocationRepository

def get_location_repository(session: SessionDep) -> SQLAlchemyLocationRepository:
    return SQLAlchemyLocationRepository(db=session)

LocationRepositoryDep = Annotated[SQLAlchemyLocationRepository, Depends(get_location_repository)]
