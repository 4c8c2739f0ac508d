from patchwork.domain import ImportIntent, SourceUnit
from patchwork.errors import ImportConflictError
from patchwork.imports import apply_imports, find_imports, merge, merge_intents, render


def _unit(text, identifier="src/app.ts"):
    return SourceUnit.parse(identifier, text)


def test_adds_declaration_above_first_statement():
    unit = _unit("const x = 1;")

    out = apply_imports(unit, [ImportIntent("bar", add={"foo"})])

    assert out == "import { foo } from 'bar';\nconst x = 1;"


def test_add_and_remove_fold_into_single_sorted_declaration():
    unit = _unit("import { a } from 'bar';")

    out = apply_imports(unit, [ImportIntent("bar", add={"b"}, remove={"a"})])

    assert out == "import { b } from 'bar';"


def test_duplicates_untouched_without_intents():
    text = "import { x } from 'pkg';\nimport { x } from 'pkg';\n"
    unit = _unit(text)

    assert apply_imports(unit, []) == text
    assert merge(unit, "pkg") == []


def test_duplicates_collapse_when_an_intent_touches_the_dependency():
    text = "import { x } from 'pkg';\nimport { x } from 'pkg';\nuse(x);\n"
    unit = _unit(text)

    out = apply_imports(unit, [ImportIntent("pkg", add={"x"})])

    assert out == "import { x } from 'pkg';\nuse(x);\n"


def test_names_from_duplicate_declarations_are_unioned():
    unit = _unit("import { b } from 'pkg';\nimport { a } from 'pkg';\n")

    out = apply_imports(unit, [ImportIntent("pkg", add={"c"})])

    assert out == "import { a, b, c } from 'pkg';\n"


def test_merge_is_independent_of_intent_order():
    text = "import { m } from 'lib';\nrun();\n"
    first = [ImportIntent("lib", add={"z"}), ImportIntent("lib", add={"a"}), ImportIntent("other", add={"q"})]
    second = list(reversed(first))

    assert apply_imports(_unit(text), first) == apply_imports(_unit(text), second)


def test_merge_is_idempotent():
    intents = [ImportIntent("lib", add={"b", "a"}), ImportIntent("dep", namespace="D")]
    once = apply_imports(_unit("import { c } from 'lib';\nrun();\n"), intents)
    twice = apply_imports(_unit(once), intents)

    assert twice == once


def test_existing_default_import_is_kept():
    unit = _unit("import React from 'react';\nrender();")

    out = apply_imports(unit, [ImportIntent("react", add={"useState"})])

    assert out == "import React, { useState } from 'react';\nrender();"


def test_aliases_and_quote_style_are_kept():
    unit = _unit('import { a as b } from "m";')

    out = apply_imports(unit, [ImportIntent("m", add={"c"})])

    assert out == 'import { a as b, c } from "m";'


def test_removing_an_alias_by_local_name():
    unit = _unit("import { a as b, c } from 'm';")

    assert apply_imports(unit, [ImportIntent("m", remove={"b"})]) == "import { c } from 'm';"


def test_removing_last_name_deletes_declaration():
    unit = _unit("import { a } from 'm';\nrun();\n")

    assert apply_imports(unit, [ImportIntent("m", remove={"a"})]) == "run();\n"


def test_removal_of_a_missing_dependency_is_a_no_op():
    unit = _unit("run();\n")

    assert apply_imports(unit, [ImportIntent("m", remove={"a"})]) == "run();\n"


def test_type_only_imports_are_left_alone():
    unit = _unit("import type { T } from 'm';\nlet v: T;")

    out = apply_imports(unit, [ImportIntent("m", add={"x"})])

    assert out == "import { x } from 'm';\nimport type { T } from 'm';\nlet v: T;"


def test_side_effect_imports_are_left_alone():
    assert find_imports(_unit("import 'polyfill';\n"), "polyfill") == []


def test_new_declaration_goes_below_leading_comment():
    unit = _unit("// header\nconst x = 1;")

    out = apply_imports(unit, [ImportIntent("bar", add={"foo"})])

    assert out == "// header\nimport { foo } from 'bar';\nconst x = 1;"


def test_new_declaration_goes_below_hash_bang_line():
    unit = _unit("#!/usr/bin/env node\nconst x = 1;\n")

    out = apply_imports(unit, [ImportIntent("bar", add={"foo"})])

    assert out == "#!/usr/bin/env node\nimport { foo } from 'bar';\nconst x = 1;\n"


def test_hash_bang_only_unit_gets_declaration_on_next_line():
    for text in ("#!/usr/bin/env node", "#!/usr/bin/env node\n"):
        out = apply_imports(_unit(text), [ImportIntent("bar", add={"foo"})])

        assert out == "#!/usr/bin/env node\nimport { foo } from 'bar';\n"


def test_namespace_import_is_added():
    unit = _unit("const x = 1;")

    out = apply_imports(unit, [ImportIntent("ns", namespace="N")])

    assert out == "import * as N from 'ns';\nconst x = 1;"


def test_find_imports_reads_every_clause_form():
    unit = _unit("import D, { a, b as c } from 'm';\nimport * as N from 'm';\n")

    found = find_imports(unit, "m")

    assert [d.default for d in found] == ["D", None]
    assert found[0].specifiers == [("a", "a"), ("b", "c")]
    assert found[1].namespace == "N"
    assert found[0].range.start == 0
    assert found[0].range.version == unit.version


def test_merge_intents_unions_sets_and_sorts_by_dependency():
    merged = merge_intents(
        [
            ImportIntent("z", add={"a"}),
            ImportIntent("b", add={"x"}),
            ImportIntent("z", add={"b"}, remove={"c"}),
        ]
    )

    assert [intent.dependency for intent in merged] == ["b", "z"]
    assert merged[1].add == frozenset({"a", "b"})
    assert merged[1].remove == frozenset({"c"})


def test_conflicting_namespace_aliases_raise():
    intents = [ImportIntent("x", namespace="A"), ImportIntent("x", namespace="B")]

    try:
        merge_intents(intents, plugin="aliaser")
    except ImportConflictError as exc:
        assert exc.dependency == "x"
        assert exc.plugin == "aliaser"
        assert "aliaser" in str(exc)
    else:
        raise AssertionError("expected ImportConflictError to be raised")


def test_render_orders_namespace_before_named():
    text = render("m", ["a"], namespace="N", default="D")

    assert text == "import * as N from 'm';\nimport D, { a } from 'm';"
    assert render("m", []) == ""
