import pytest

from dumpnote.services.filter_svc import parse_note_filters, split_operator


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("5", ("=", "5")),
        ("=5", ("=", "5")),
        (">5", (">", "5")),
        (">=5", (">=", "5")),
        ("<=5", ("<=", "5")),
        ("<>5", ("<>", "5")),
        ("!=5", ("<>", "5")),
        ("<5", ("<", "5")),
    ],
)
def test_split_operator(raw, expected):
    assert split_operator(raw) == expected


def test_parse_builds_typed_predicates():
    preds = parse_note_filters({"set": "0", "timestamp": ">=1700", "marked": "true", "search": "milk"})
    got = [(p.column, p.operator, p.value) for p in preds]
    assert got == [
        ("set", "=", 0),
        ("timestamp", ">=", 1700),
        ("marked", "=", True),
        ("body", "LIKE", "%milk%"),
    ]


def test_set_none_maps_to_sentinel():
    (p,) = parse_note_filters({"set": "none"})
    assert (p.column, p.operator, p.value) == ("set", "=", -1)


def test_missing_and_empty_values_are_skipped():
    assert parse_note_filters({"id": None, "set": "", "marked": None}) == []


def test_bad_values_are_rejected():
    with pytest.raises(ValueError, match="Expected boolean"):
        parse_note_filters({"marked": "yes"})
    with pytest.raises(ValueError, match="Expected integer"):
        parse_note_filters({"id": ">=abc"})
