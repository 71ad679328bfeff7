from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from somapi_backend.database import get_db
from somapi_backend.external.dispatcher import call_external_function, list_external_functions
from somapi_backend.permissions.auth import get_current_principal
from somapi_backend.permissions.principal import Principal
from somapi_types.webservice import ExternalFunctionInfo

webservice_router = APIRouter(prefix="/webservice", tags=["webservice"])


@webservice_router.get("/functions", response_model=list[ExternalFunctionInfo])
def list_functions(
    permissions: Annotated[Principal, Depends(get_current_principal)],
) -> List[ExternalFunctionInfo]:
    return list_external_functions(permissions)


@webservice_router.post("/{wsfunction}")
def call_function(
    wsfunction: str,
    permissions: Annotated[Principal, Depends(get_current_principal)],
    params: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    return call_external_function(wsfunction, params, permissions, db)
