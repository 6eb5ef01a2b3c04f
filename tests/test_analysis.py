import pytest

from api_migrator.errors import InputError
from api_migrator.model.analysis import AnalysisResult
from api_migrator.model.canonical import DtoSpec, EndpointSpec, RepositorySpec, ServiceSpec


def _ep(method_name, http="GET", status=200):
    return EndpointSpec.create("UserController", method_name, http, status_code=status)


class TestAnalysisResult:
    def test_duplicate_endpoint_first_wins(self):
        result = AnalysisResult()
        assert result.add_endpoint(_ep("getUser", status=200)) is True
        assert result.add_endpoint(_ep("getUser", status=404)) is False
        assert len(result.endpoints) == 1
        assert result.endpoints[0].status_code == 200

    def test_same_operation_different_method_is_distinct(self):
        result = AnalysisResult()
        result.add_endpoint(_ep("user", "GET"))
        result.add_endpoint(_ep("user", "DELETE"))
        assert [e.http_method for e in result.endpoints] == ["GET", "DELETE"]

    def test_insertion_order_kept(self):
        result = AnalysisResult()
        for name in ("c", "a", "b"):
            result.add_dto(DtoSpec(name=name, package_name="p"))
        assert [d.name for d in result.dtos] == ["c", "a", "b"]

    def test_merge_keeps_existing_entries(self):
        source = AnalysisResult()
        source.add_endpoint(_ep("getUser", status=200))
        source.add_service(ServiceSpec(name="UserService", package_name="p"))

        bytecode = AnalysisResult()
        bytecode.add_endpoint(_ep("getUser", status=500))
        bytecode.add_endpoint(_ep("listUsers"))
        bytecode.add_repository(RepositorySpec(name="UserRepository", package_name="p"))

        source.merge(bytecode)
        assert [e.method_name for e in source.endpoints] == ["getUser", "listUsers"]
        assert source.endpoints[0].status_code == 200
        assert len(source.services) == 1
        assert len(source.repositories) == 1

    def test_to_migration_spec(self):
        result = AnalysisResult()
        result.add_endpoint(_ep("getUser"))
        spec = result.to_migration_spec("shop", "users", {"module": "users"})
        assert spec.project_name == "shop"
        assert spec.module_name == "users"
        assert len(spec.endpoints) == 1
        assert spec.metadata == {"module": "users"}

    def test_dict_roundtrip_drops_duplicates(self):
        first = _ep("getUser", status=200).to_json_dict()
        second = _ep("getUser", status=201).to_json_dict()
        result = AnalysisResult.from_dict({"endpoints": [first, second], "dtos": []})
        assert len(result.endpoints) == 1
        assert result.to_dict()["endpoints"][0]["statusCode"] == 200

    def test_invalid_payload(self):
        with pytest.raises(InputError):
            AnalysisResult.from_dict({"endpoints": [{"id": "x"}]})

    def test_payload_ids_do_not_split_identity(self):
        result = AnalysisResult.from_dict({"endpoints": [
            {"id": "a", "controllerClass": "UserController", "methodName": "getUser",
             "httpMethod": "GET", "path": "/users", "statusCode": 200},
            {"id": "UserController#getUser::GET", "controllerClass": "UserController",
             "methodName": "getUser", "httpMethod": "get", "path": "/users", "statusCode": 404},
        ]})
        assert [(e.id, e.status_code) for e in result.endpoints] == [("UserController#getUser::GET", 200)]

    def test_missing_id_is_derived(self):
        result = AnalysisResult.from_dict({"endpoints": [
            {"controllerClass": "UserController", "methodName": "deleteUser", "httpMethod": "delete",
             "controllerPath": "/users", "methodPath": "/{id}"},
        ]})
        [endpoint] = result.endpoints
        assert endpoint.id == "UserController#deleteUser::DELETE"
        assert endpoint.http_method == "DELETE"
        assert endpoint.path == "/users/{id}"
