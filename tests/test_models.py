import pytest
from pydantic import ValidationError

from api_migrator.errors import EmptyResponseError, SpecParseError
from api_migrator.model.canonical import (
    DtoSpec,
    EndpointSpec,
    FieldSpec,
    MigrationSpec,
    ParameterSpec,
    TypeRef,
    ValidationSpec,
    join_paths,
)
from api_migrator.model.output import parse_fastapi_spec


class TestTypeRef:
    def test_simple(self):
        t = TypeRef.simple("String")
        assert t.name == "String"
        assert t.collection is False
        assert t.element_type is None

    def test_collection_display_name(self):
        t = TypeRef.of_collection("List", "UserDto")
        assert t.name == "List<UserDto>"
        assert t.collection is True
        assert t.collection_type == "List"
        assert t.element_type == "UserDto"

    def test_parse_bare_string(self):
        t = TypeRef.model_validate("com.example.UserDto")
        assert t.name == "com.example.UserDto"
        assert t.collection is False

    def test_parse_collection_object_without_name(self):
        t = TypeRef.model_validate({"collectionType": "Set", "elementType": "Tag"})
        assert t.collection is True
        assert t.name == "Set<Tag>"

    def test_parse_collection_flag_defaults_kind_and_element(self):
        t = TypeRef.model_validate({"collection": True, "name": "List<OrderDto>"})
        assert t.collection_type == "List"
        assert t.element_type == "OrderDto"

    def test_name_never_empty(self):
        assert TypeRef.model_validate({}).name == "Object"
        assert TypeRef.simple("").name == "Object"

    def test_unknown_name_is_accepted(self):
        assert TypeRef.simple("WidgetFrobnicator").name == "WidgetFrobnicator"

    def test_camel_case_json(self):
        data = TypeRef.of_collection("List", "Tag").to_json_dict()
        assert data == {
            "name": "List<Tag>",
            "collection": True,
            "collectionType": "List",
            "elementType": "Tag",
        }


class TestValidationSpec:
    def test_empty_has_no_constraints(self):
        v = ValidationSpec.empty()
        assert v.lower_bound() is None
        assert v.upper_bound() is None
        assert v.constraint_kwargs() == {}

    def test_exclusive_wins_over_inclusive(self):
        v = ValidationSpec(gt=0, ge=1, lt=100, le=99)
        assert v.lower_bound() == ("gt", 0)
        assert v.upper_bound() == ("lt", 100)

    def test_inclusive_wins_over_min_max(self):
        v = ValidationSpec(ge=1.5, min=5, max=10)
        assert v.lower_bound() == ("ge", 1.5)
        assert v.upper_bound() == ("le", 10)

    def test_constraint_kwargs(self):
        v = ValidationSpec(min_length=1, max_length=50, lt=10.5, max=3, pattern="^[a-z]+$")
        assert v.constraint_kwargs() == {
            "min_length": 1,
            "max_length": 50,
            "lt": 10.5,
            "pattern": "^[a-z]+$",
        }


class TestFieldSpec:
    def test_not_null_forces_required(self):
        f = FieldSpec(name="email", type=TypeRef.simple("String"), optional=True,
                      validation=ValidationSpec(not_null=True))
        assert f.optional is False

    def test_not_blank_forces_required(self):
        f = FieldSpec.model_validate({
            "name": "title",
            "type": "String",
            "optional": True,
            "validation": {"notBlank": True, "minLength": 1},
        })
        assert f.optional is False
        assert f.validation.min_length == 1

    def test_optional_kept_without_constraints(self):
        f = FieldSpec(name="nickname", type=TypeRef.simple("String"), optional=True)
        assert f.optional is True

    def test_null_validation_becomes_empty(self):
        f = FieldSpec.model_validate({"name": "x", "type": "int", "validation": None})
        assert f.validation == ValidationSpec.empty()


class TestParameterSpec:
    @pytest.mark.parametrize("required,optional,expected", [
        (True, None, True),
        (False, False, False),
        (None, True, False),
        (None, False, True),
        (None, None, False),
    ])
    def test_required_effective(self, required, optional, expected):
        p = ParameterSpec(name="q", type=TypeRef.simple("String"), required=required, optional=optional)
        assert p.required_effective is expected


class TestEndpointSpec:
    def test_create_derives_id_and_path(self):
        ep = EndpointSpec.create(
            "UserController", "getUser", "get",
            controller_path="/api/users", method_path="/{id}",
            status_code=200, response_body=TypeRef.simple("UserDto"),
        )
        assert ep.id == "UserController#getUser::GET"
        assert ep.http_method == "GET"
        assert ep.path == "/api/users/{id}"
        assert ep.query_params == []

    def test_same_name_on_two_channels(self):
        ep = EndpointSpec.create(
            "C", "m", "GET",
            query_params=[ParameterSpec(name="id", type=TypeRef.simple("String"), source="query")],
            header_params=[ParameterSpec(name="id", type=TypeRef.simple("String"), source="header")],
        )
        assert [p.source for p in ep.all_params()] == ["query", "header"]

    def test_is_immutable(self):
        ep = EndpointSpec.create("C", "m", "GET")
        with pytest.raises(ValidationError):
            ep.status_code = 500

    def test_parse_camel_case(self):
        ep = EndpointSpec.model_validate({
            "id": "C#m::POST",
            "controllerClass": "C",
            "methodName": "m",
            "httpMethod": "POST",
            "path": "/c",
            "requestBody": "CreateDto",
            "unknownKey": 1,
        })
        assert ep.request_body.name == "CreateDto"
        assert ep.to_json_dict()["controllerClass"] == "C"

    def test_payload_id_is_replaced_by_derived_id(self):
        ep = EndpointSpec.model_validate({
            "id": "something-else",
            "controllerClass": "C",
            "methodName": "m",
            "httpMethod": "patch",
            "path": "/c",
        })
        assert ep.id == "C#m::PATCH"
        assert ep.http_method == "PATCH"


class TestJoinPaths:
    def test_join(self):
        assert join_paths("/api/", "/users/") == "/api/users"
        assert join_paths("", None) == "/"
        assert join_paths("api", "") == "/api"


class TestMigrationSpec:
    def _spec(self, status):
        return MigrationSpec(
            project_name="shop",
            module_name="orders",
            endpoints=[EndpointSpec.create("OrderController", "list", "GET", status_code=status)],
            dtos=[DtoSpec(name="OrderDto", package_name="com.shop", fields=[])],
            metadata={"root": "/src", "module": "orders"},
        )

    def test_canonical_json_is_stable(self):
        assert self._spec(200).canonical_json() == self._spec(200).canonical_json()

    def test_canonical_json_tracks_content(self):
        assert self._spec(200).canonical_json() != self._spec(201).canonical_json()

    def test_dto_id(self):
        assert DtoSpec(name="OrderDto", package_name="com.shop").id == "com.shop.OrderDto"


class TestParseFastApiSpec:
    def test_tolerates_surrounding_prose(self):
        spec = parse_fastapi_spec('Sure! Here it is:\n{"models": [], "routes": []}\nDone.')
        assert spec.models == []
        assert spec.routes == []

    def test_blank_is_empty_response(self):
        with pytest.raises(EmptyResponseError):
            parse_fastapi_spec("   \n")

    def test_invalid_json(self):
        with pytest.raises(SpecParseError):
            parse_fastapi_spec("no json here")

    def test_missing_routes_rejected(self):
        with pytest.raises(SpecParseError):
            parse_fastapi_spec('{"models": []}')

    def test_request_body_alias(self):
        spec = parse_fastapi_spec(
            '{"models": [], "routes": [{"path": "/x", "method": "POST", '
            '"requestBody": "XDto", "responseBody": "YDto", "statusCode": 201}]}'
        )
        route = spec.routes[0]
        assert route.request_model == "XDto"
        assert route.response_model == "YDto"
        assert route.status_code == 201
