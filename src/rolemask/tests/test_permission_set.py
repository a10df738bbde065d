import random

import pytest

from rolemask.security.rbac.permission_set import (
    PermissionFlags,
    PermissionSet,
    parse_flags,
)


def test_flag_values_keep_all_as_its_own_bit():
    assert PermissionFlags.NONE == 0
    assert PermissionFlags.ALL == 1
    assert PermissionFlags.INSERT == 2
    assert PermissionFlags.UPDATE == 4
    assert PermissionFlags.DELETE == 8
    combined = PermissionFlags.INSERT | PermissionFlags.UPDATE | PermissionFlags.DELETE
    assert not (combined & PermissionFlags.ALL)


def test_encode_orders_by_resource_and_keeps_zero_entries():
    permissions = PermissionSet({3: 0, 1: 5})
    assert permissions.encode() == "1#5,3#0"


def test_encode_empty_set_is_empty_text():
    assert PermissionSet().encode() == ""


@pytest.mark.parametrize("seed", range(5))
def test_decode_reproduces_encoded_set(seed):
    rng = random.Random(seed)
    original = PermissionSet()
    for _ in range(rng.randint(0, 50)):
        original.set(rng.randint(0, 10_000), PermissionFlags(rng.randint(0, 15)))

    decoded = PermissionSet.decode(original.encode())

    assert decoded == original
    assert decoded.items() == original.items()


def test_decode_is_lenient_with_malformed_segments():
    permissions = PermissionSet.decode(" 2#6 ,,x#4,7#abc,9,5#-3,2#1")

    # later duplicate wins; bad numbers read as 0
    assert permissions.get(2) == PermissionFlags.ALL
    assert permissions.get(0) == PermissionFlags.UPDATE
    assert permissions.get(7) == PermissionFlags.NONE
    assert permissions.get(9) == PermissionFlags.NONE
    assert permissions.get(5) == PermissionFlags.NONE
    assert permissions.resources == [0, 2, 5, 7, 9]


def test_decode_none_or_empty_text():
    assert len(PermissionSet.decode(None)) == 0
    assert len(PermissionSet.decode("")) == 0


def test_set_merges_and_never_revokes():
    permissions = PermissionSet()
    permissions.set(4, PermissionFlags.INSERT)
    permissions.set(4, PermissionFlags.DELETE)

    assert permissions.get(4) == PermissionFlags.INSERT | PermissionFlags.DELETE

    permissions.set(4, PermissionFlags.NONE)
    assert permissions.get(4) == PermissionFlags.INSERT | PermissionFlags.DELETE


def test_set_defaults_to_all():
    permissions = PermissionSet()
    permissions.set(11)
    assert permissions.has(11, PermissionFlags.ALL)


def test_has_distinguishes_absent_from_read_only():
    permissions = PermissionSet({1: 0})

    assert permissions.has(1) is True
    assert permissions.has(1, PermissionFlags.NONE) is True
    assert permissions.has(1, PermissionFlags.ALL) is False
    assert permissions.has(2) is False
    assert permissions.get(1) == PermissionFlags.NONE
    assert permissions.get(2) is None


def test_has_requires_every_requested_bit():
    permissions = PermissionSet({1: PermissionFlags.INSERT | PermissionFlags.UPDATE})

    assert permissions.has(1, PermissionFlags.INSERT)
    assert permissions.has(1, PermissionFlags.INSERT | PermissionFlags.UPDATE)
    assert not permissions.has(1, PermissionFlags.INSERT | PermissionFlags.DELETE)


def test_remove_then_get_is_absent():
    permissions = PermissionSet({8: 1})
    permissions.remove(8)
    permissions.remove(8)

    assert permissions.get(8) is None
    assert permissions.has(8, PermissionFlags.NONE) is False


def test_prune_removes_ids_outside_valid_set():
    permissions = PermissionSet({1: 1, 2: 2, 3: 4, 4: 8})

    assert permissions.prune({2, 3}) is True
    assert permissions.resources == [2, 3]
    assert permissions.prune({2, 3}) is False


@pytest.mark.parametrize("valid_ids", [set(), None, []])
def test_prune_with_no_valid_ids_keeps_everything(valid_ids):
    permissions = PermissionSet({1: 1, 2: 2})

    assert permissions.prune(valid_ids) is False
    assert permissions.resources == [1, 2]


@pytest.mark.parametrize(
    "text,expected",
    [
        ("all", PermissionFlags.ALL),
        ("insert,update", PermissionFlags.INSERT | PermissionFlags.UPDATE),
        ("Delete|Insert", PermissionFlags.DELETE | PermissionFlags.INSERT),
        ("6", PermissionFlags.INSERT | PermissionFlags.UPDATE),
        ("", PermissionFlags.NONE),
        ("none", PermissionFlags.NONE),
    ],
)
def test_parse_flags(text, expected):
    assert parse_flags(text) == expected


def test_parse_flags_rejects_unknown_names():
    with pytest.raises(ValueError, match="Unknown permission flag"):
        parse_flags("insert,publish")
