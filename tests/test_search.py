"""Tests for the search matcher."""
from jsonstate import as_value, match


def test_value_match_case_insensitive(sample_value):
    result = match(sample_value, "DARK")
    assert result.matches == (("config", "theme"),)
    assert result.is_match("config.theme")


def test_key_match_on_scalar(sample_value):
    result = match(sample_value, "project")
    assert result.matches == (("config", "metadata", "project_name"),)


def test_containers_never_match():
    """A container whose key contains the query is not itself a hit."""
    value = as_value({"config": {"x": 1}, "configured": True})
    result = match(value, "config")
    assert result.matches == (("configured",),)
    assert not result.is_match(("config",))


def test_ancestors_of_every_match(sample_value):
    result = match(sample_value, "Confidential")
    assert result.ancestors == frozenset({(), ("config",), ("config", "metadata")})
    assert result.is_ancestor("config.metadata")
    assert not result.is_ancestor(("config", "metadata", "security_level"))


def test_scalar_text_forms():
    value = as_value({"flag": True, "nothing": None, "n": 1234, "items": [False]})
    assert match(value, "true").matches == (("flag",),)
    assert match(value, "null").matches == (("nothing",),)
    assert match(value, "23").matches == (("n",),)
    assert match(value, "fal").matches == (("items", 0),)


def test_document_order():
    value = as_value({"b": "hit", "a": ["hit", {"c": "hit"}]})
    assert match(value, "hit").matches == (("b",), ("a", 0), ("a", 1, "c"))


def test_empty_query_matches_nothing(sample_value):
    for query in ("", None):
        result = match(sample_value, query)
        assert not result
        assert len(result) == 0
        assert result.ancestors == frozenset()


def test_whitespace_is_matched_literally():
    value = as_value({"greeting": "hello world", "name": "nexus", "two words": 1})
    result = match(value, " ")
    assert result.matches == (("greeting",), ("two words",))
    assert match(value, "o w").matches == (("greeting",),)


def test_array_index_is_not_a_key():
    """Index segments are never matched as keys."""
    value = as_value(["x", "y"])
    assert match(value, "0").matches == ()


def test_scalar_root():
    result = match(as_value("needle"), "eed")
    assert result.matches == ((),)
    assert result.ancestors == frozenset()
