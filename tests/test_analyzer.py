from nano_engine import analyze


def test_clean_program_has_no_diagnostics():
    assert analyze('set x = 1\nrepeat x\n  check x > 0\n    say x\n  end\nend') == []


def test_reports_each_recovered_problem():
    source = "\n".join(["end", "set total", "", "repeat 3", "blah", "check x"])
    diagnostics = [(d.line, d.kind) for d in analyze(source)]
    assert diagnostics == [
        (1, "stray-end"),
        (2, "missing-assign"),
        (4, "unclosed-block"),
        (5, "unknown-syntax"),
        (6, "unclosed-block"),
    ]


def test_diagnostic_dict_shape():
    (diagnostic,) = analyze("set x")
    assert diagnostic.to_dict() == {
        "line": 1,
        "kind": "missing-assign",
        "message": "`set` needs a value, like `set x = 10`: set x",
    }
