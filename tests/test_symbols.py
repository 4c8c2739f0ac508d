from patchwork.analysis.symbols import extract_symbols
from patchwork.domain import SourceUnit

SOURCE = """\
import React from 'react';
import * as path from 'path';
import { a as b, c } from './m';
export const one = 1, two = 2;
export function f() {}
class K {}
interface I {}
type T = string;
enum E { A }
export { K as Klass };
export * from './star';
export * as ns from './ns';
export { x } from './re';
export default K;
"""


def _symbols():
    return extract_symbols(SourceUnit.parse("src/mod.ts", SOURCE))


def test_import_bindings():
    symbols = _symbols()

    react = symbols.bindings["React"]
    assert react.is_import
    assert (react.source, react.imported) == ("react", "default")
    assert symbols.bindings["path"].imported == "*"
    assert symbols.bindings["b"].imported == "a"
    assert symbols.bindings["c"].imported == "c"
    assert [s.name for s in symbols.imports_from("./m")] == ["b", "c"]


def test_declaration_kinds():
    bindings = _symbols().bindings

    kinds = {name: bindings[name].kind for name in ("one", "two", "f", "K", "I", "T", "E")}
    assert kinds == {
        "one": "variable",
        "two": "variable",
        "f": "function",
        "K": "class",
        "I": "interface",
        "T": "type",
        "E": "enum",
    }


def test_exports():
    symbols = _symbols()
    exports = symbols.exports

    assert exports["one"].local == "one"
    assert exports["f"].local == "f"
    assert exports["Klass"].local == "K"
    assert exports["default"].local == "K"
    assert (exports["ns"].source, exports["ns"].imported) == ("./ns", "*")
    assert (exports["x"].source, exports["x"].imported) == ("./re", "x")
    assert symbols.star_exports == ["./star"]
    assert "K" not in exports


def test_symbol_ranges_cover_the_name_and_are_untagged():
    symbols = _symbols()

    for name in ("React", "one", "K", "E"):
        span = symbols.bindings[name].range
        assert SOURCE[span.start:span.end] == name
        assert span.version is None


def test_anonymous_default_export_is_its_own_symbol():
    symbols = extract_symbols(SourceUnit.parse("a.ts", "export default 40 + 2;\n"))

    default = symbols.exports["default"]
    assert default.symbol is not None
    assert default.symbol.kind == "default"


def test_ambient_declarations_are_bindings():
    symbols = extract_symbols(SourceUnit.parse("a.ts", "declare const VERSION: string;\ndeclare function log(m: string): void;\n"))

    assert symbols.bindings["VERSION"].kind == "variable"
    assert symbols.bindings["log"].kind == "function"


def test_first_declaration_wins():
    symbols = extract_symbols(SourceUnit.parse("a.ts", "function f(a: string): void;\nfunction f(a: any) {}\n"))

    assert symbols.bindings["f"].range.start == len("function ")
