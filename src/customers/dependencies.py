from typing import Annotated

from fastapi import Depends

from src.customers.repositories import SQLAlchemyCustomerRepository
from src.database import SessionDep

def get_customer_repository(session: SessionDep) -> SQLAlchemyCustomerRepository:
    return SQLAlchemyCustomerRepository(db=session)

CustomerRepositoryDep = Annotated[SQLAlchemyCustomerRepository, Depends(get_customer_repository)]
