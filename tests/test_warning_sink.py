from psareadiness.utils.warning_sink import WarningSink, parse_warning_header


def test_pop_all_drains():
    sink = WarningSink()
    sink.handle("first")
    sink.handle("")
    sink.handle("second")
    assert sink.pop_all() == ["first", "second"]
    assert sink.pop_all() == []


def test_sinks_are_independent():
    a, b = WarningSink(), WarningSink()
    a.handle("only a")
    assert b.pop_all() == []
    assert a.pop_all() == ["only a"]


def test_parse_warning_header():
    value = '299 - "existing pods in namespace \\"ns\\" violate the new PodSecurity enforce level \\"restricted:latest\\""'
    assert parse_warning_header(value) == [
        'existing pods in namespace "ns" violate the new PodSecurity enforce level "restricted:latest"'
    ]


def test_parse_combined_warning_header():
    assert parse_warning_header('299 - "one", 299 - "two"') == ["one", "two"]


def test_parse_unstructured_warning_header():
    assert parse_warning_header("  something odd ") == ["something odd"]
    assert parse_warning_header("") == []


def test_handle_headers():
    sink = WarningSink()
    sink.handle_headers(['299 - "a"', '299 - "b"'])
    sink.handle_headers(None)
    assert sink.pop_all() == ["a", "b"]
