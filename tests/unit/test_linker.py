#!/usr/bin/env python3
"""Test import loading and spread composition."""

from pathlib import Path

from modelspec.core import syntax
from modelspec.core.errors import IssueKind
from modelspec.core.linker import link_specs
from modelspec.core.linker_impl import build_symbol_table, load_spec_graph


def _kinds(diagnostics) -> list[IssueKind]:
    return [d.kind for d in diagnostics]


def _field_names(decl: syntax.DeclarationNode) -> list[str]:
    return [f.name for f in decl.body.fields]


COMMONS = """
    common {
      created number // Timestamp of creation
      updated number
      deleted? number
    }
    """


class TestImportGraph:
    def test_imports_resolve_relative_to_importing_file(self, write_specs):
        root = write_specs(
            {
                "data/mood.go": "import ../commons.go\n\nMood {\n  emoji string\n  ...common\n}\n",
                "commons.go": COMMONS,
            }
        )
        graph = load_spec_graph([root])
        assert graph.diagnostics == []
        assert list(graph.files) == [root.resolve(), (root.parent.parent / "commons.go").resolve()]

    def test_import_cycle_names_full_chain(self, write_specs):
        a = write_specs(
            {
                "a.go": "import ./b.go\nA { x string }\n",
                "b.go": "import ./a.go\nB { y string }\n",
            }
        )
        a = a.resolve()
        b = a.parent / "b.go"

        graph = load_spec_graph([a])
        assert _kinds(graph.diagnostics) == [IssueKind.IMPORT_CYCLE]
        diagnostic = graph.diagnostics[0]
        assert diagnostic.message == f"Import cycle detected: {a} -> {b} -> {a}"
        assert (diagnostic.file, diagnostic.line) == (str(b), 1)

    def test_self_import_is_a_cycle(self, write_specs):
        a = write_specs({"a.go": "import ./a.go\nA { x string }\n"}).resolve()
        graph = load_spec_graph([a])
        assert graph.diagnostics[0].message.endswith(f"{a} -> {a}")

    def test_diamond_import_is_not_a_cycle(self, write_specs):
        root = write_specs(
            {
                "root.go": "import ./left.go\nimport ./right.go\n",
                "left.go": "import ./base.go\n",
                "right.go": "import ./base.go\n",
                "base.go": "Base { id string }\n",
            }
        )
        graph = load_spec_graph([root])
        assert graph.diagnostics == []
        assert len(graph.files) == 4

    def test_missing_import(self, write_specs):
        root = write_specs({"a.go": "\nimport ./nowhere.go\nA { x string }\n"})
        graph = load_spec_graph([root])
        assert _kinds(graph.diagnostics) == [IssueKind.IMPORT_NOT_FOUND]
        assert graph.diagnostics[0].line == 2
        assert "nowhere.go" in graph.diagnostics[0].message

    def test_missing_root(self, tmp_path: Path):
        graph = load_spec_graph([tmp_path / "absent.go"])
        assert _kinds(graph.diagnostics) == [IssueKind.IMPORT_NOT_FOUND]

    def test_parse_failure_does_not_stop_other_files(self, write_specs):
        bad = write_specs({"bad.go": "Broken {\n  x\n}\n", "good.go": "Good { x string }\n"})
        good = bad.parent / "good.go"

        graph = load_spec_graph([bad, good])
        assert _kinds(graph.diagnostics) == [IssueKind.PARSE]
        assert list(graph.files) == [good.resolve()]

    def test_visible_files_breadth_first(self, write_specs):
        root = write_specs(
            {
                "root.go": "import ./a.go\nimport ./b.go\n",
                "a.go": "import ./deep.go\n",
                "b.go": "",
                "deep.go": "",
            }
        )
        graph = load_spec_graph([root])
        names = [p.name for p in graph.visible_files(root.resolve())]
        assert names == ["root.go", "a.go", "b.go", "deep.go"]


class TestSymbolTable:
    def test_same_file_duplicate(self, write_specs):
        root = write_specs({"a.go": "E { x string }\nE { y string }\n"})
        symbols = build_symbol_table(load_spec_graph([root]))
        assert _kinds(symbols.diagnostics) == [IssueKind.DUPLICATE_DECLARATION]
        assert symbols.diagnostics[0].line == 2

    def test_cross_file_duplicate_entity(self, write_specs):
        root = write_specs({"a.go": "import ./b.go\nE { x string }\n", "b.go": "E { y string }\n"})
        unit = link_specs([root])
        assert _kinds(unit.diagnostics) == [IssueKind.DUPLICATE_DECLARATION]
        assert unit.diagnostics[0].file.endswith("b.go")


class TestSpreads:
    def test_group_is_spliced_at_spread_point(self, write_specs):
        root = write_specs(
            {
                "data/mood.go": """
                    import ../commons.go

                    Mood {
                      _id string<isUnique|indexed>
                      ...common
                      emoji string
                    }
                    """,
                "commons.go": COMMONS,
            }
        )
        unit = link_specs([root])
        assert unit.ok
        assert [e.name for e in unit.entities] == ["Mood"]
        assert [g.name for g in unit.groups] == ["common"]
        (mood,) = unit.entities
        assert _field_names(mood) == ["_id", "created", "updated", "deleted", "emoji"]
        assert mood.body.get_field("created").description == "Timestamp of creation"
        assert all(isinstance(item, syntax.FieldNode) for item in mood.body.items)

        created = mood.body.get_field("created")
        assert created.spliced
        assert created.file.name == "commons.go"
        assert not mood.body.get_field("emoji").spliced
        assert mood.body.get_field("emoji").file.name == "mood.go"
        assert not unit.groups[0].body.get_field("created").spliced

    def test_spread_copies_are_isolated(self, write_specs):
        root = write_specs(
            {"a.go": "g { x string }\nA { ...g }\nB { ...g }\n"},
        )
        unit = link_specs([root])
        a, b = unit.entities
        a.body.fields[0].name = "renamed"
        a.body.fields[0].annotations.append(syntax.AnnotationNode(name="trim"))

        assert b.body.fields[0].name == "x"
        assert b.body.fields[0].annotations == []
        assert unit.groups[0].body.fields[0].name == "x"

    def test_groups_may_spread_groups(self, write_specs):
        root = write_specs(
            {"a.go": "base { id string }\naudited { ...base\n at number }\nE { ...audited }\n"}
        )
        unit = link_specs([root])
        assert [e.name for e in unit.entities] == ["E"]
        assert _field_names(unit.entities[0]) == ["id", "at"]
        assert {g.name for g in unit.groups} == {"base", "audited"}

    def test_unknown_group(self, write_specs):
        root = write_specs({"a.go": "E {\n  ...missing\n}\n"})
        unit = link_specs([root])
        assert _kinds(unit.diagnostics) == [IssueKind.UNKNOWN_GROUP]
        assert (unit.diagnostics[0].line, unit.diagnostics[0].column) == (2, 3)
        assert "'missing'" in unit.diagnostics[0].message

    def test_group_must_be_imported_to_be_visible(self, write_specs):
        a = write_specs({"a.go": "E { ...shared }\n", "b.go": "shared { x string }\n"})
        unit = link_specs([a, a.parent / "b.go"])
        assert _kinds(unit.diagnostics) == [IssueKind.UNKNOWN_GROUP]

    def test_current_file_wins_over_imports(self, write_specs):
        root = write_specs(
            {
                "a.go": "import ./b.go\ncommon { local string }\nE { ...common }\n",
                "b.go": "common { imported string }\n",
            }
        )
        unit = link_specs([root])
        entity = next(e for e in unit.entities if e.name == "E")
        assert _field_names(entity) == ["local"]

    def test_spread_cycle(self, write_specs):
        root = write_specs({"a.go": "g1 { ...g2 }\ng2 { ...g1 }\nE { ...g1 }\n"})
        unit = link_specs([root])
        assert _kinds(unit.diagnostics) == [IssueKind.SPREAD_CYCLE]
        assert "g1 -> g2 -> g1" in unit.diagnostics[0].message

    def test_dotted_spread_splices_nested_shape(self, write_specs):
        root = write_specs(
            {
                "a.go": """
                    UserProfile {
                      settings {
                        theme string
                        language string
                      }
                    }
                    Prefs {
                      ...UserProfile.settings
                    }
                    """
            }
        )
        unit = link_specs([root])
        assert unit.ok
        assert [e.name for e in unit.entities] == ["UserProfile", "Prefs"]
        assert _field_names(unit.entities[1]) == ["theme", "language"]

    def test_dotted_spread_into_scalar_is_unknown(self, write_specs):
        root = write_specs({"a.go": "P { name string }\nQ { ...P.name }\n"})
        unit = link_specs([root])
        assert _kinds(unit.diagnostics) == [IssueKind.UNKNOWN_GROUP]

    def test_spreads_in_nested_and_endpoint_shapes(self, write_specs):
        root = write_specs(
            {
                "a.go": """
                    import ./commons.go

                    GetMood {
                      path /moods/:id
                      method GET
                      params {
                        id string
                      }
                      response.ok {
                        http.code 200
                        data {
                          mood {
                            emoji string
                            ...common
                          }
                        }
                      }
                    }
                    """,
                "commons.go": COMMONS,
            }
        )
        unit = link_specs([root])
        assert unit.ok
        (endpoint,) = unit.endpoints
        mood = endpoint.responses[0].data.get_field("mood")
        assert [f.name for f in mood.shape.fields] == ["emoji", "created", "updated", "deleted"]


class TestLinkSpecs:
    def test_load_errors_skip_composition(self, write_specs):
        root = write_specs({"a.go": "import ./missing.go\nE { ...nothing }\n"})
        unit = link_specs([root])
        assert _kinds(unit.diagnostics) == [IssueKind.IMPORT_NOT_FOUND]
        assert unit.entities == []

    def test_declaration_order_root_first(self, write_specs):
        root = write_specs(
            {
                "root.go": "import ./lib.go\nZeta { a string }\nAlpha { b string }\n",
                "lib.go": "Lib { c string }\n",
            }
        )
        unit = link_specs([root])
        assert [e.name for e in unit.entities] == ["Zeta", "Alpha", "Lib"]
        assert [p.name for p in unit.files] == ["root.go", "lib.go"]

    def test_visible_entities(self, write_specs):
        root = write_specs(
            {"a.go": "import ./b.go\nA { x string }\n", "b.go": "B { y string }\n"}
        )
        unit = link_specs([root])
        assert unit.visible_entities(root.resolve()) == {"A", "B"}
        assert unit.visible_entities((root.parent / "b.go").resolve()) == {"B"}

    def test_fixture_specs_link(self, specs_dir: Path):
        roots = sorted((specs_dir / "data").glob("*.go"))
        unit = link_specs(roots)
        assert unit.ok, [d.format() for d in unit.diagnostics]
        assert [g.name for g in unit.groups] == ["common"]
        assert {e.name for e in unit.entities} == {"UserProfile", "Identity", "Product", "Mood"}
