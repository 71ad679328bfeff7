"""
Dispatching web service calls to the projection functions.

call_external_function performs every boundary check before the function
body runs: the function must exist, belong to the caller's enabled service,
the caller must be authorised for a restricted service and hold the
function's capabilities, and the parameters must validate.
"""

import time
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from somapi_backend.exceptions import (
    DatabaseQueryException,
    FunctionNotFoundException,
    InsufficientCapabilityException,
    InvalidParametersException,
    ServiceAccessException,
)
from somapi_backend.external.registry import ExternalFunction, functions_for_service, get_function
from somapi_backend.model.auth import ExternalService, ExternalServiceUser
from somapi_backend.permissions.principal import Principal
from somapi_backend.permissions.provider import AuthorizationProvider, DatabaseAuthorizationProvider
from somapi_backend.repositories import RepositoryError
from somapi_types.webservice import ExternalFunctionInfo

logger = logging.getLogger(__name__)


def _validation_errors(error: ValidationError) -> List[Dict[str, str]]:
    return [
        {
            "field": " -> ".join(str(x) for x in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in error.errors()
    ]


def check_service_access(
    function: ExternalFunction,
    principal: Principal,
    db: Session,
    now: Optional[int] = None,
) -> ExternalService:
    """
    Raises:
        ServiceAccessException: the caller's service does not offer the
            function, is disabled, or does not list the caller
    """
    user_id = principal.get_user_id_or_throw()

    if principal.service not in function.services:
        raise ServiceAccessException(
            detail=f"Function {function.name} is not available in service {principal.service}",
            user_id=user_id,
        )

    service = db.query(ExternalService).filter(ExternalService.shortname == principal.service).first()
    if service is None or not service.enabled:
        raise ServiceAccessException(detail=f"Service {principal.service} is not enabled", user_id=user_id)

    if service.restrictedusers:
        now = int(time.time()) if now is None else now
        authorised = (
            db.query(ExternalServiceUser)
            .filter(
                ExternalServiceUser.externalservice_id == service.id,
                ExternalServiceUser.user_id == user_id,
            )
            .first()
        )
        if authorised is None:
            raise ServiceAccessException(
                detail=f"User {user_id} is not authorised to use service {service.shortname}",
                user_id=user_id,
            )
        if authorised.validuntil and authorised.validuntil < now:
            raise ServiceAccessException(
                detail=f"Access of user {user_id} to service {service.shortname} has expired",
                user_id=user_id,
            )

    return service


def check_capabilities(function: ExternalFunction, principal: Principal, authz: AuthorizationProvider) -> None:
    for capability in function.capabilities:
        if not authz.has_capability_anywhere(principal, capability):
            raise InsufficientCapabilityException(
                detail=f"Missing capability {capability} required by {function.name}",
                capability=capability,
                user_id=principal.user_id,
            )


def call_external_function(
    name: str,
    params: Optional[Dict[str, Any]],
    principal: Principal,
    db: Session,
    authz: Optional[AuthorizationProvider] = None,
) -> List[Dict[str, Any]]:
    """
    Run one web service function on behalf of the caller.

    Returns:
        The function's records serialised with their wire (camelCase) names

    Raises:
        FunctionNotFoundException: unknown function
        ServiceAccessException: service checks failed
        InsufficientCapabilityException: capability missing
        InvalidParametersException: malformed parameters
        DatabaseQueryException: the store failed; never retried
    """
    function = get_function(name)
    if function is None:
        raise FunctionNotFoundException(detail=f"Unknown web service function {name}")

    try:
        check_service_access(function, principal, db)

        authz = authz if authz is not None else DatabaseAuthorizationProvider(db)
        check_capabilities(function, principal, authz)

        try:
            query = function.params.model_validate(params if params is not None else {})
        except ValidationError as e:
            raise InvalidParametersException(
                detail=f"Invalid parameters for {name}",
                context={"validation_errors": _validation_errors(e)},
                user_id=principal.user_id,
            )

        if function.row_checks:
            records = function.handler(query.ids(), principal, db, authz=authz)
        else:
            records = function.handler(query.ids(), principal, db)

    except (RepositoryError, SQLAlchemyError) as e:
        logger.error(f"Store failure in {name} for user {principal.user_id}: {e}")
        raise DatabaseQueryException(
            detail=f"Database error in {name}",
            context={"function": name},
            user_id=principal.user_id,
        ) from e

    logger.debug(f"{name} returned {len(records)} records for user {principal.user_id}")
    return function.returns_adapter().dump_python(records, by_alias=True, mode="json")


def list_external_functions(principal: Principal) -> List[ExternalFunctionInfo]:
    """Functions offered by the service the caller's token belongs to."""
    return [
        ExternalFunctionInfo(
            name=function.name,
            description=function.description,
            type=function.type,
            capabilities=function.capabilities,
        )
        for function in functions_for_service(principal.service)
    ]
