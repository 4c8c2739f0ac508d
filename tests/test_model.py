from patchwork.analysis import AnalysisCache, ModelOverlay, ProjectModel, SemanticQuery, overlay
from patchwork.domain import SourceUnit
from patchwork.imports import in_package

SOURCES = {
    "src/a.ts": "export const value = 1;\nfunction make() {}\nexport default make;\n",
    "src/b.ts": "import { value } from './a';\nimport make from './a.js';\n",
    "src/c.ts": "export function helper() {}\n",
    "src/index.ts": "export { value as renamed } from './a';\nexport * from './c';\n",
    "src/main.ts": "import { renamed, helper } from './index';\nimport { useState } from 'react';\n",
}


def _model():
    return ProjectModel(SOURCES)


def test_resolves_imports_to_declarations():
    model = _model()

    value = model.resolve("src/b.ts", "value")
    assert (value.identifier, value.kind) == ("src/a.ts", "variable")
    assert model.trace("src/b.ts", "value") == "src/a.ts"
    assert [s.identifier for s in model.chain("src/b.ts", "value")] == ["src/b.ts", "src/a.ts"]


def test_default_import_follows_default_export():
    symbol = _model().resolve("src/b.ts", "make")

    assert (symbol.name, symbol.kind, symbol.identifier) == ("make", "function", "src/a.ts")


def test_resolves_through_re_exports():
    model = _model()

    renamed = model.resolve("src/main.ts", "renamed")
    helper = model.resolve("src/main.ts", "helper")

    assert (renamed.name, renamed.identifier) == ("value", "src/a.ts")
    assert (helper.name, helper.identifier) == ("helper", "src/c.ts")


def test_package_imports_resolve_to_the_import_itself():
    model = _model()

    symbol = model.resolve("src/main.ts", "useState")

    assert symbol.is_import
    assert symbol.source == "react"
    assert model.trace("src/main.ts", "useState") is None


def test_in_package():
    model = _model()
    query = SemanticQuery(model, SourceUnit.parse("src/main.ts", SOURCES["src/main.ts"]))

    assert in_package(query, "useState", "react") is True
    assert in_package(query, "helper", "react") is False
    assert in_package(query, "missing", "react") is False


def test_circular_star_exports_terminate():
    model = ProjectModel(
        {
            "a.ts": "export * from './b';\n",
            "b.ts": "export * from './a';\n",
            "main.ts": "import { x } from './a';\n",
        }
    )

    symbol = model.resolve("main.ts", "x")

    assert symbol.is_import
    assert model.trace("main.ts", "x") is None


def test_star_exports_skip_default():
    model = ProjectModel(
        {
            "a.ts": "export default 1;\n",
            "b.ts": "export * from './a';\n",
            "main.ts": "import d from './b';\n",
        }
    )

    assert model.trace("main.ts", "d") is None


def test_index_and_extension_resolution():
    model = ProjectModel({"lib/index.tsx": "export const x = 1;\n", "main.ts": ""})

    assert model.resolve_module("main.ts", "./lib") == "lib/index.tsx"
    assert model.resolve_module("main.ts", "react") is None
    assert model.resolve_module("main.ts", "./missing") is None


def test_overlay_substitutes_one_unit():
    base = _model()
    layer = overlay(base, "src/a.ts", "export const other = 2;\n")

    assert layer.source("src/a.ts") == "export const other = 2;\n"
    assert layer.source("src/c.ts") == base.source("src/c.ts")
    assert layer.trace("src/b.ts", "value") is None
    assert layer.trace("src/main.ts", "helper") == "src/c.ts"
    assert base.trace("src/b.ts", "value") == "src/a.ts"


def test_overlay_can_introduce_new_units():
    base = _model()
    layer = overlay(base, "src/new.ts", "export const fresh = 1;\n")

    assert "src/new.ts" in layer.identifiers()
    assert "src/new.ts" not in base.identifiers()
    assert base.source("src/new.ts") is None


def test_overlays_stack():
    base = _model()
    first = overlay(base, "src/a.ts", "export const value = 1;\nexport const extra = 2;\n")
    second = overlay(first, "src/b.ts", "import { extra } from './a';\n")

    assert second.depth == 2
    assert second.root_model is base
    assert second.overridden() == ["src/b.ts", "src/a.ts"]
    assert second.trace("src/b.ts", "extra") == "src/a.ts"


def test_overlaying_same_identifier_replaces_the_layer():
    base = _model()
    first = overlay(base, "src/a.ts", "export const one = 1;\n")
    second = overlay(first, "src/a.ts", "export const two = 2;\n")

    assert second.base is base
    assert second.depth == 1
    assert second.version > first.version


def test_overlay_versions_are_newer_than_base():
    base = _model()
    before = base.version_of("src/a.ts")

    layer = overlay(base, "src/a.ts", "x;")

    assert layer.version_of("src/a.ts") > before
    assert layer.version_of("src/c.ts") == base.version_of("src/c.ts")


def test_overlay_analysis_does_not_evict_base_analysis():
    base = _model()
    base.analysis("src/a.ts")
    base_version = base.version_of("src/a.ts")

    layer = overlay(base, "src/a.ts", "export const other = 2;\n")
    layer.analysis("src/a.ts")

    assert ("src/a.ts", base_version) in base.cache
    assert ("src/a.ts", layer.version) in base.cache
    assert "value" in base.analysis("src/a.ts").exports


def test_overlay_reuses_the_given_unit():
    unit = SourceUnit.parse("src/a.ts", "export const other = 2;\n")
    layer = ModelOverlay(_model(), unit.identifier, unit.text, unit)

    assert "other" in layer.analysis("src/a.ts").exports


def test_update_bumps_version_and_refreshes_analysis():
    model = _model()
    before = model.version_of("src/a.ts")
    model.analysis("src/a.ts")

    version = model.update("src/a.ts", "export const value = 3;\nexport const more = 4;\n")

    assert version > before
    assert ("src/a.ts", before) not in model.cache
    assert "more" in model.analysis("src/a.ts").exports


def test_reads_from_disk_under_root(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "a.ts").write_text("export const value = 1;\n")
    (tmp_path / "src" / "b.ts").write_text("import { value } from './a';\n")

    model = ProjectModel(root=str(tmp_path))

    assert model.trace("src/b.ts", "value") == "src/a.ts"
    assert model.source("src/missing.ts") is None


def test_invalidate_falls_back_to_disk(tmp_path):
    (tmp_path / "a.ts").write_text("export const disk = 1;\n")
    model = ProjectModel(root=str(tmp_path))
    model.update("a.ts", "export const memory = 1;\n")

    model.invalidate("a.ts")

    assert model.source("a.ts") == "export const disk = 1;\n"
    assert "disk" in model.analysis("a.ts").exports


def test_disk_text_is_pinned_until_invalidated(tmp_path):
    (tmp_path / "a.ts").write_text("export const first = 1;\n")
    model = ProjectModel(root=str(tmp_path))
    version = model.version_of("a.ts")
    assert "first" in model.analysis("a.ts").exports

    (tmp_path / "a.ts").write_text("export const second = 1;\n")

    assert model.source("a.ts") == "export const first = 1;\n"
    assert model.version_of("a.ts") == version
    assert "a.ts" not in model.identifiers()

    model.invalidate("a.ts")

    assert model.source("a.ts") == "export const second = 1;\n"
    assert model.version_of("a.ts") > version
    assert "second" in model.analysis("a.ts").exports


def test_backslash_identifiers_are_normalized():
    model = _model()

    assert model.source("src\\a.ts") == SOURCES["src/a.ts"]


def test_query_falls_back_to_unit_when_model_lacks_it():
    unit = SourceUnit.parse("loose.ts", "const x = 1;\n")
    query = SemanticQuery(ProjectModel(), unit)

    assert query.binding("x").kind == "variable"
    assert query.exports() == []


def test_query_resolves_nodes():
    text = SOURCES["src/main.ts"] + "helper();\n"
    unit = SourceUnit.parse("src/main.ts", text)
    layer = overlay(_model(), unit.identifier, unit.text, unit)
    query = SemanticQuery(layer, unit)

    call = unit.statements[-1].named_children[0]
    symbol = query.resolve_node(call.child_by_field_name("function"))

    assert symbol.identifier == "src/c.ts"
    assert query.trace("helper") == "src/c.ts"


def test_shared_cache_between_models():
    cache = AnalysisCache()
    model = ProjectModel(SOURCES, cache=cache)

    model.analysis("src/a.ts")

    assert len(cache) == 1


def test_from_units():
    units = [SourceUnit.parse(identifier, text) for identifier, text in SOURCES.items()]

    model = ProjectModel.from_units(units)

    assert model.identifiers() == sorted(SOURCES)
    assert model.trace("src/main.ts", "helper") == "src/c.ts"
