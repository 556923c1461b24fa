"""
Unit tests for dynamic tool input schema generation.
"""

from openapi_mcp.models import ApiParameter, HttpMethod, ParameterLocation, ParameterType, RequestBody
from openapi_mcp.schema import to_input_schema


class TestToInputSchema:
    """Test schema generation from definitions."""

    def test_parameters_become_properties(self, make_api):
        schema = to_input_schema(make_api())

        assert schema["type"] == "object"
        assert schema["properties"]["id"] == {"type": "string", "description": ""}
        assert "verbose" in schema["properties"]
        assert schema["required"] == ["id"]

    def test_type_default_and_enum(self, make_api):
        api = make_api(parameters=[
            ApiParameter(
                name="units",
                description="Unit system",
                location=ParameterLocation.QUERY,
                param_type=ParameterType.STRING,
                default="metric",
                enum_values=["metric", "imperial"],
            ),
            ApiParameter(name="days", location=ParameterLocation.QUERY, param_type=ParameterType.INTEGER),
        ])

        properties = to_input_schema(api)["properties"]

        assert properties["units"] == {
            "type": "string",
            "description": "Unit system",
            "default": "metric",
            "enum": ["metric", "imperial"],
        }
        assert properties["days"]["type"] == "integer"
        assert "default" not in properties["days"]

    def test_body_location_parameters_not_exposed(self, make_api):
        api = make_api(parameters=[
            ApiParameter(name="payload", location=ParameterLocation.BODY, required=True),
            ApiParameter(name="X-Trace", location=ParameterLocation.HEADER, required=True),
        ])

        schema = to_input_schema(api)

        assert "payload" not in schema["properties"]
        assert schema["required"] == ["X-Trace"]

    def test_body_schema_used_directly(self, make_api):
        body_schema = {"type": "object", "properties": {"title": {"type": "string"}}}
        api = make_api(
            method=HttpMethod.POST,
            request_body=RequestBody(schema_=body_schema, required=True, description="New post"),
        )

        schema = to_input_schema(api)

        assert schema["properties"]["body"] == {
            "type": "object",
            "properties": {"title": {"type": "string"}},
            "description": "New post",
        }
        assert schema["required"] == ["id", "body"]
        assert "description" not in body_schema

    def test_body_schema_description_not_overridden(self, make_api):
        api = make_api(request_body=RequestBody(schema_={"type": "array", "description": "Items"}, description="Other"))

        body = to_input_schema(api)["properties"]["body"]

        assert body == {"type": "array", "description": "Items"}

    def test_body_without_schema(self, make_api):
        api = make_api(request_body=RequestBody(description="Anything"))

        schema = to_input_schema(api)

        assert schema["properties"]["body"] == {"type": "object", "description": "Anything"}
        assert "body" not in schema["required"]

    def test_no_parameters(self, make_api):
        schema = to_input_schema(make_api(parameters=[], path="/status"))

        assert schema == {"type": "object", "properties": {}, "required": []}
