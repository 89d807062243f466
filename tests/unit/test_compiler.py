"""End-to-end tests for the compilation pipeline."""

import json
import textwrap
from pathlib import Path

import pytest

from modelspec.core import ir
from modelspec.core.compiler import compile_project, compile_spec, compile_specs
from modelspec.core.errors import CompilationError, IssueKind

COMMONS = """
    // Common fields shared across models
    common {
      created number // Timestamp of creation
      updated number // Timestamp of last update
      deleted? number // Timestamp of soft deletion
    }
    """

MOOD = """
    import ../commons.go

    Mood {
      _id string<isUnique|indexed> // Unique identifier (ULID)
      user_id string<indexed>
      emoji string
      ...common
    }
    """


@pytest.fixture
def mood_root(write_specs) -> Path:
    return write_specs({"data/mood.go": MOOD, "commons.go": COMMONS})


class TestEndToEnd:
    def test_mood_resolves_common_fields_in_order(self, mood_root):
        result = compile_spec(mood_root)
        assert result.ok, [d.format() for d in result.diagnostics]

        mood = result.ir.get_entity("Mood")
        assert mood.field_names == ["_id", "user_id", "emoji", "created", "updated", "deleted"]
        assert mood.get_field("deleted").is_optional
        assert not mood.get_field("created").is_optional

        _id = mood.get_field("_id")
        assert _id.has_constraint(ir.ConstraintKind.INDEXED)
        assert _id.has_constraint(ir.ConstraintKind.IS_UNIQUE)
        user_id = mood.get_field("user_id")
        assert user_id.has_constraint(ir.ConstraintKind.INDEXED)
        assert not user_id.has_constraint(ir.ConstraintKind.IS_UNIQUE)

    def test_spread_fields_keep_their_source_location(self, mood_root):
        mood = compile_spec(mood_root).raise_for_errors().get_entity("Mood")
        created = mood.get_field("created").location
        assert (Path(created.file).name, created.line, created.column) == ("commons.go", 4, 3)
        emoji = mood.get_field("emoji").location
        assert (Path(emoji.file).name, emoji.line) == ("mood.go", 7)

    def test_field_groups_are_not_in_ir(self, mood_root):
        compiled = compile_spec(mood_root).raise_for_errors()
        assert list(compiled.entities) == ["Mood"]
        assert compiled.get_entity("common") is None

    def test_compilation_is_deterministic(self, mood_root):
        first = compile_spec(mood_root).raise_for_errors().to_json()
        second = compile_spec(mood_root).raise_for_errors().to_json()
        assert first == second

    def test_to_dict_field_order(self, mood_root):
        data = compile_spec(mood_root).raise_for_errors().to_dict()
        assert list(data) == ["entities", "endpoints", "files"]
        fields = data["entities"]["Mood"]["fields"]
        assert [f["name"] for f in fields][:3] == ["_id", "user_id", "emoji"]
        assert fields[0]["constraints"] == [
            {"kind": "isUnique", "value": None, "bounds": None, "text": None, "values": []},
            {"kind": "indexed", "value": None, "bounds": None, "text": None, "values": []},
        ]
        assert json.loads(compile_spec(mood_root).ir.to_json()) == data


class TestFailures:
    def test_import_cycle_produces_no_ir(self, write_specs):
        a = write_specs({"a.go": "import ./b.go\nA { x string }\n", "b.go": "import ./a.go\n"})
        result = compile_spec(a)
        assert result.ir is None
        assert not result.ok
        assert [d.kind for d in result.diagnostics] == [IssueKind.IMPORT_CYCLE]

    def test_type_mismatch(self, write_specs):
        root = write_specs({"a.go": "Person {\n  age number<trim>\n}\n"})
        result = compile_spec(root)
        assert [d.kind for d in result.diagnostics] == [IssueKind.TYPE_MISMATCH]

    def test_numeric_bounds_compile(self, write_specs):
        root = write_specs({"a.go": "Person {\n  age number<min:0|max:150>\n}\n"})
        age = compile_spec(root).raise_for_errors().get_entity("Person").get_field("age")
        assert age.get_constraint(ir.ConstraintKind.MAX).value == 150

    def test_multi_parameter_constraints_compile(self, write_specs):
        root = write_specs(
            {
                "a.go": """
                    Account {
                      score number<between:0,100>
                      key string<startsWith:sk_|lengthBetween:8,64>
                      locale string(en-US|fr-FR)
                    }
                    """
            }
        )
        account = compile_spec(root).raise_for_errors().get_entity("Account")
        score = account.get_field("score").get_constraint(ir.ConstraintKind.BETWEEN)
        assert score.bounds == (0, 100)
        key = account.get_field("key")
        assert key.get_constraint(ir.ConstraintKind.STARTS_WITH).text == "sk_"
        assert key.get_constraint(ir.ConstraintKind.LENGTH_BETWEEN).bounds == (8, 64)
        assert account.get_field("locale").enum_values == ["en-US", "fr-FR"]

    def test_duplicate_field_from_spread(self, write_specs):
        root = write_specs(
            {"a.go": "common { created number }\nMood {\n  created number\n  ...common\n}\n"}
        )
        result = compile_spec(root)
        assert [d.kind for d in result.diagnostics] == [IssueKind.DUPLICATE_FIELD]

    def test_path_param_consistency(self, write_specs):
        endpoint = """
            GetProfile {
              path /profiles/:id
              method GET
              %s
              response.ok {
                http.code 200
                data {}
              }
            }
            """
        broken = write_specs({"broken.go": endpoint % ""})
        result = compile_spec(broken)
        assert [d.kind for d in result.diagnostics] == [IssueKind.PATH_PARAM_MISMATCH]

        fixed = write_specs({"fixed.go": endpoint % "params { id string }"})
        compiled = compile_spec(fixed).raise_for_errors()
        assert compiled.get_endpoint("GetProfile").path_params == ["id"]

    def test_parse_errors_from_every_file_are_reported(self, write_specs):
        a = write_specs({"a.go": "A {\n  x\n}\n", "b.go": "B {\n  y string<\n}\n"})
        result = compile_specs([a, a.parent / "b.go"])
        assert [d.kind for d in result.diagnostics] == [IssueKind.PARSE, IssueKind.PARSE]

    def test_raise_for_errors(self, write_specs):
        root = write_specs({"a.go": "E {\n  n number<trim>\n}\n"})
        with pytest.raises(CompilationError) as exc_info:
            compile_spec(root).raise_for_errors()
        assert exc_info.value.diagnostics[0].kind == IssueKind.TYPE_MISMATCH
        assert "TypeMismatchError" in str(exc_info.value)

    def test_diagnostic_format(self, write_specs):
        root = write_specs({"a.go": "E {\n  n number<trim>\n}\n"})
        (diagnostic,) = compile_spec(root).diagnostics
        assert diagnostic.format().startswith(f"{root.resolve()}:2:12: TypeMismatchError: ")


class TestFixtureSpecs:
    def test_product_entity(self, specs_dir: Path):
        compiled = compile_spec(specs_dir / "data" / "create-product.go").raise_for_errors()
        product = compiled.get_entity("Product")
        assert product.field_names[-4:] == ["meta", "created", "updated", "deleted"]

        images = product.get_field("images")
        assert images.cardinality == ir.Cardinality.OPTIONAL_ARRAY
        assert [f.name for f in images.fields] == ["url", "alt_text", "is_primary"]

        tags = product.get_field("tags")
        assert tags.is_array and not tags.is_nested
        assert tags.type == ir.FieldTypeKind.STRING
        assert product.get_field("sku").description == "Stock Keeping Unit (unique identifier)"

    def test_get_products_endpoint(self, specs_dir: Path):
        compiled = compile_spec(
            specs_dir / "endpoint" / "get-products.endpoint.go"
        ).raise_for_errors()
        endpoint = compiled.get_endpoint("GetProductsRequest")
        assert endpoint.method == ir.HttpMethod.GET
        assert endpoint.params is None and endpoint.body is None

        query = {f.name: f for f in endpoint.query}
        assert query["category"].enum_values == [
            "electronics",
            "clothing",
            "food",
            "books",
            "other",
        ]
        assert query["limit"].get_constraint(ir.ConstraintKind.MIN).value == 1

        ok, error = endpoint.responses
        assert (ok.http_code, ok.status, ok.message) == (
            200,
            "successful",
            "Products fetched successfully",
        )
        products = ok.data[0]
        assert products.name == "products" and products.is_array
        assert error.http_code == 400

    def test_update_profile_endpoint(self, specs_dir: Path):
        compiled = compile_spec(
            specs_dir / "endpoint" / "update-profile.endpoint.go"
        ).raise_for_errors()
        endpoint = compiled.get_endpoint("UpdateProfileRequest")
        assert endpoint.path_params == ["id"]
        assert endpoint.method == ir.HttpMethod.PATCH
        length = endpoint.params[0].get_constraint(ir.ConstraintKind.LENGTH)
        assert length.value == 26
        assert endpoint.get_response("error").data == []

    def test_whole_fixture_set(self, specs_dir: Path):
        roots = sorted(specs_dir.glob("data/*.go")) + sorted(specs_dir.glob("endpoint/*.go"))
        compiled = compile_specs(roots).raise_for_errors()
        assert set(compiled.entities) == {"UserProfile", "Identity", "Product", "Mood"}
        assert len(compiled.endpoints) == 4


class TestCompileProject:
    def test_compile_project_from_manifest(self, write_specs, tmp_path: Path):
        write_specs({"specs/data/mood.go": MOOD, "specs/commons.go": COMMONS})
        manifest = tmp_path / "modelspec.toml"
        manifest.write_text(
            textwrap.dedent(
                """\
                [project]
                name = "moods"
                roots = ["specs/data/mood.go"]
                """
            ),
            encoding="utf-8",
        )
        compiled = compile_project(manifest).raise_for_errors()
        assert list(compiled.entities) == ["Mood"]

    def test_manifest_compiler_settings_apply(self, write_specs, tmp_path: Path):
        write_specs({"specs/a.go": "E {\n  s string<indexed>(a|b)\n}\n"})
        manifest = tmp_path / "modelspec.toml"
        manifest.write_text(
            '[project]\nname = "x"\nroots = ["specs/a.go"]\n\n'
            "[compiler]\nallow_enum_with_flags = false\n",
            encoding="utf-8",
        )
        result = compile_project(manifest)
        assert [d.kind for d in result.diagnostics] == [IssueKind.MALFORMED_ANNOTATION]
