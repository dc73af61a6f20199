import json
from unittest.mock import Mock

import pytest

import registry as registry_module
from backend import JsonFileTeamStore
from constants import TEAM_CODE_ALPHABET
from exceptions import CodeConflict, PersistenceFailure, UnknownTeam
from registry import TeamRegistry, generate_team_code


def test_generated_code_uses_restricted_alphabet():
    for _ in range(200):
        code = generate_team_code()
        assert len(code) == 6
        assert set(code) <= set(TEAM_CODE_ALPHABET)
    assert not set("0O1I") & set(TEAM_CODE_ALPHABET)


def test_create_random_code_registers_and_persists(team_registry, teams_path):
    before = team_registry.list_all()
    code = team_registry.create()

    assert code not in before
    assert team_registry.exists(code)
    assert len(code) == 6 and set(code) <= set(TEAM_CODE_ALPHABET)
    with open(teams_path, encoding="utf-8") as f:
        on_disk = json.load(f)
    assert on_disk[code]["createdAt"] == team_registry.lookup(code).createdAt


def test_create_retries_on_collision(team_registry, monkeypatch):
    team_registry.create("AAAAAA")
    codes = iter(["AAAAAA", "AAAAAA", "BBBBBB"])
    monkeypatch.setattr(registry_module, "generate_team_code", lambda rng=None: next(codes))

    assert team_registry.create() == "BBBBBB"


def test_custom_code_is_normalized(team_registry):
    assert team_registry.create("  test01 ") == "TEST01"
    assert team_registry.lookup("test01").createdAt


def test_blank_custom_code_generates_one(team_registry):
    code = team_registry.create("   ")
    assert len(code) == 6


def test_custom_code_conflict_keeps_original_entry(team_registry):
    team_registry.create("TEST01")
    created_at = team_registry.lookup("TEST01").createdAt

    with pytest.raises(CodeConflict) as excinfo:
        team_registry.create("test01")

    assert excinfo.value.message == "Code already exists"
    assert team_registry.lookup("TEST01").createdAt == created_at
    assert len(team_registry.list_all()) == 1


def test_lookup_unknown_code(team_registry):
    with pytest.raises(UnknownTeam):
        team_registry.lookup("NOPE42")
    assert not team_registry.exists("NOPE42")


def test_load_reads_existing_document(teams_path):
    with open(teams_path, "w", encoding="utf-8") as f:
        json.dump({"TEST01": {"createdAt": "2025-01-01T00:00:00+00:00"}, "BROKEN": "nope"}, f)

    registry = TeamRegistry(JsonFileTeamStore(teams_path))
    registry.load()

    assert list(registry.list_all()) == ["TEST01"]
    assert registry.lookup("TEST01").createdAt == "2025-01-01T00:00:00+00:00"


def test_load_survives_unreadable_store():
    store = Mock()
    store.load.side_effect = ValueError("not json")
    registry = TeamRegistry(store)

    registry.load()

    assert registry.list_all() == {}


def test_persistence_failure_keeps_entry_in_memory(caplog):
    store = Mock()
    store.load.return_value = {}
    store.save.side_effect = PersistenceFailure("disk full")
    registry = TeamRegistry(store)
    registry.load()

    code = registry.create("TEST01")

    assert code == "TEST01"
    assert registry.exists("TEST01")
    assert "disk full" in caplog.text


def test_list_all_returns_a_copy(team_registry):
    team_registry.create("TEST01")
    listing = team_registry.list_all()
    listing.clear()
    assert team_registry.exists("TEST01")
