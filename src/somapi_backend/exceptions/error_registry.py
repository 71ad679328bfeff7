"""
Error registry management for loading and accessing error definitions.

This module loads the packaged error_registry.yaml file and provides
utilities to access error definitions by code.
"""

import yaml
from pathlib import Path
from typing import Dict, List, Optional

from somapi_types.errors import ErrorDefinition, ErrorMessageFormat


REGISTRY_PATH = Path(__file__).with_name("error_registry.yaml")

# Cache for error registry
_error_registry: Optional[Dict[str, ErrorDefinition]] = None


def load_error_registry() -> Dict[str, ErrorDefinition]:
    """
    Load error registry from YAML file.

    Returns:
        Dictionary mapping error codes to ErrorDefinition objects

    Raises:
        FileNotFoundError: If error_registry.yaml is not found
        ValueError: If YAML is malformed or validation fails
    """
    global _error_registry

    if _error_registry is not None:
        return _error_registry

    if not REGISTRY_PATH.exists():
        raise FileNotFoundError(f"Error registry not found at {REGISTRY_PATH}.")

    with open(REGISTRY_PATH, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data or "errors" not in data:
        raise ValueError("Invalid error registry format: missing 'errors' key")

    registry = {}
    for error_dict in data["errors"]:
        try:
            message_data = error_dict.get("message", {})
            error_def = ErrorDefinition(
                code=error_dict["code"],
                http_status=error_dict["http_status"],
                category=error_dict["category"],
                severity=error_dict["severity"],
                title=error_dict["title"],
                message=ErrorMessageFormat(
                    plain=message_data.get("plain", ""),
                    markdown=message_data.get("markdown"),
                ),
                internal_description=error_dict.get("internal_description", ""),
                affected_functions=error_dict.get("affected_functions", []),
                common_causes=error_dict.get("common_causes", []),
            )
        except Exception as e:
            raise ValueError(
                f"Failed to parse error definition for {error_dict.get('code', 'unknown')}: {e}"
            ) from e

        if error_def.code in registry:
            raise ValueError(f"Duplicate error code in registry: {error_def.code}")
        registry[error_def.code] = error_def

    _error_registry = registry
    return _error_registry


def get_error_definition(error_code: str) -> ErrorDefinition:
    """
    Get error definition by code.

    Unknown codes get a generic internal definition instead of raising, so a
    typo in an error code never masks the original failure.
    """
    registry = load_error_registry()

    if error_code not in registry:
        return ErrorDefinition(
            code="UNKNOWN",
            http_status=500,
            category="internal",
            severity="error",
            title="Unknown Error",
            message=ErrorMessageFormat(plain=f"An error occurred (code: {error_code})"),
            internal_description=f"Error code {error_code} is not in the registry",
        )

    return registry[error_code]


def get_all_error_codes() -> List[str]:
    return sorted(load_error_registry().keys())
