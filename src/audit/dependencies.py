from typing import Annotated

from fastapi import Depends

from src.audit.service import AbstractAuditSink, SQLAuditLogger
from src.database import SessionDep

def get_audit_logger(session: SessionDep) -> AbstractAuditSink:
    return SQLAuditLogger(session)

AuditLoggerDep = Annotated[AbstractAuditSink, Depends(get_audit_logger)]
