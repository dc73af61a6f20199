import json
import os
from unittest.mock import Mock

import pytest
import redis

from backend import JsonFileTeamStore, RedisTeamStore, build_team_store
from exceptions import PersistenceFailure
from redis_keys import REDIS_TEAMS_KEY


def test_file_store_creates_missing_file(teams_path):
    store = JsonFileTeamStore(teams_path)

    assert store.load() == {}
    with open(teams_path, encoding="utf-8") as f:
        assert json.load(f) == {}


def test_file_store_treats_empty_file_as_empty(teams_path):
    open(teams_path, "w").close()
    assert JsonFileTeamStore(teams_path).load() == {}


def test_file_store_rewrites_whole_document(teams_path):
    store = JsonFileTeamStore(teams_path)
    store.save({"AAAAAA": {"createdAt": "a"}, "BBBBBB": {"createdAt": "b"}})
    store.save({"BBBBBB": {"createdAt": "b"}})

    assert store.load() == {"BBBBBB": {"createdAt": "b"}}
    assert not os.path.exists(f"{teams_path}.tmp")


def test_file_store_write_error_is_persistence_failure(tmp_path):
    store = JsonFileTeamStore(str(tmp_path / "missing-dir" / "teams.json"))
    with pytest.raises(PersistenceFailure):
        store.save({"AAAAAA": {"createdAt": "a"}})


def test_redis_store_load_decodes_hash():
    client = Mock()
    client.hgetall.return_value = {
        "TEST01": json.dumps({"createdAt": "2025-01-01T00:00:00+00:00"}),
        "BROKEN": "{not json",
    }
    store = RedisTeamStore(redis_client=client)

    assert store.load() == {"TEST01": {"createdAt": "2025-01-01T00:00:00+00:00"}}
    client.hgetall.assert_called_once_with(REDIS_TEAMS_KEY)


def test_redis_store_save_rewrites_hash_in_transaction():
    client = Mock()
    pipe = client.pipeline.return_value
    store = RedisTeamStore(redis_client=client)

    store.save({"TEST01": {"createdAt": "a"}})

    client.pipeline.assert_called_once_with(transaction=True)
    pipe.delete.assert_called_once_with(REDIS_TEAMS_KEY)
    pipe.hset.assert_called_once_with(REDIS_TEAMS_KEY, mapping={"TEST01": json.dumps({"createdAt": "a"})})
    pipe.execute.assert_called_once()


def test_redis_store_save_error_is_persistence_failure():
    client = Mock()
    client.pipeline.return_value.execute.side_effect = redis.ConnectionError("down")
    store = RedisTeamStore(redis_client=client)

    with pytest.raises(PersistenceFailure):
        store.save({"TEST01": {"createdAt": "a"}})


def test_build_team_store_rejects_unknown_kind():
    assert isinstance(build_team_store("file"), JsonFileTeamStore)
    with pytest.raises(ValueError):
        build_team_store("sqlite")
