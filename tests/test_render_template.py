from app.utils.email.render_template import is_truthy, render_template, stringify


def test_substitutes_known_variables_and_leaves_unknown():
    out = render_template("Hi {{name}}, see {{missing}}", {"name": "Jane"})
    assert out == "Hi Jane, see {{missing}}"


def test_stringify_rules():
    assert stringify(None) == ""
    assert stringify(True) == "true"
    assert stringify(3.0) == "3"
    assert stringify(["a", "b"]) == "a, b"
    assert stringify({"k": 1}) == '{\n  "k": 1\n}'


def test_if_without_else():
    template = "A{{#if flag}}B{{/if}}C"
    assert render_template(template, {"flag": True}) == "ABC"
    assert render_template(template, {"flag": False}) == "AC"
    assert render_template(template, {}) == "AC"


def test_if_else_branches():
    template = "{{#if link}}Join {{link}}{{else}}No link yet{{/if}}"
    assert render_template(template, {"link": "https://meet"}) == "Join https://meet"
    assert render_template(template, {"link": ""}) == "No link yet"


def test_nested_conditionals_resolve_inside_out():
    template = "{{#if a}}[{{#if b}}both{{else}}only a{{/if}}]{{else}}none{{/if}}"
    assert render_template(template, {"a": 1, "b": 1}) == "[both]"
    assert render_template(template, {"a": 1, "b": 0}) == "[only a]"
    assert render_template(template, {"a": 0, "b": 1}) == "none"


def test_blocks_span_lines():
    template = "<p>\n{{#if note}}\nNote: {{note}}\n{{/if}}\n</p>"
    assert "Note: hi" in render_template(template, {"note": "hi"})
    assert "Note" not in render_template(template, {})


def test_unbalanced_tags_are_stripped():
    out = render_template("x{{#if a}}y{{else}}z", {"a": True})
    assert out == "xyz"


def test_truthiness():
    assert not is_truthy(None)
    assert not is_truthy(0)
    assert not is_truthy("")
    assert not is_truthy(float("nan"))
    assert is_truthy("0")
    assert is_truthy([])
