"""
Input schema generation for dynamic API tools.
"""

from typing import Any, Dict, List

from .models import ApiDefinition, ParameterLocation


def to_input_schema(api: ApiDefinition) -> Dict[str, Any]:
    """
    Build the JSON object schema advertised for a definition.

    Properties are the declared parameters (Body-location parameters are not
    exposed individually) plus a `body` property when the definition has a
    request body. Pure and deterministic; runs on every tool listing.
    """
    properties: Dict[str, Dict[str, Any]] = {}
    required: List[str] = []

    for param in api.parameters:
        if param.location == ParameterLocation.BODY:
            continue

        prop: Dict[str, Any] = {
            "type": param.param_type.value,
            "description": param.description,
        }
        if param.default is not None:
            prop["default"] = param.default
        if param.enum_values is not None:
            prop["enum"] = list(param.enum_values)

        properties[param.name] = prop

        if param.required:
            required.append(param.name)

    body = api.request_body
    if body is not None:
        schema = body.schema_
        if isinstance(schema, dict):
            body_prop = dict(schema)
            if body.description and "description" not in body_prop:
                body_prop["description"] = body.description
        elif schema is not None:
            body_prop = {
                "type": "object",
                "description": body.description,
                "properties": schema,
            }
        else:
            body_prop = {
                "type": "object",
                "description": body.description,
            }
        properties["body"] = body_prop

        if body.required:
            required.append("body")

    return {
        "type": "object",
        "properties": properties,
        "required": required,
    }
