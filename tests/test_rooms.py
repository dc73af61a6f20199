import time

import rooms as rooms_module
from rooms import RoomDirectory, RoomState


def test_message_id_is_redrawn_while_it_collides(monkeypatch):
    room = RoomState("TEST01")
    monkeypatch.setattr(time, "time", lambda: 1700000000.0)
    draws = iter([5, 5, 7])
    monkeypatch.setattr(rooms_module.random, "randrange", lambda spread: next(draws))

    first = room.chat_message("Alice", "one")
    room.append(first)
    second = room.chat_message("Alice", "two")

    assert first.id == "m-1700000000000-5"
    assert second.id == "m-1700000000000-7"


def test_system_notice_ids_use_their_own_prefix():
    room = RoomState("TEST01")
    notice = room.system_notice("Alice joined the chat")
    assert notice.id.startswith("sys-")
    assert notice.system and notice.name is None


def test_detach_unknown_room_creates_nothing():
    directory = RoomDirectory()

    assert directory.detach("NOPE42") is None
    assert directory.rooms == {}


def test_detach_floors_at_zero_and_clears_log():
    directory = RoomDirectory()
    room = directory.attach("TEST01")
    room.append(room.system_notice("Alice joined the chat"))

    directory.detach("TEST01")
    directory.detach("TEST01")

    assert room.member_count == 0
    assert room.messages == []
    assert directory.get("TEST01") is room
