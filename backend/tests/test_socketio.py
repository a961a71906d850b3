def _names(received):
    return [pkt["name"] for pkt in received]


def _events(received, name):
    return [pkt["args"] for pkt in received if pkt["name"] == name]


def test_create_and_join_room(sio_factory):
    alice = sio_factory()
    created = alice.emit("createRoom", {"playerName": "Alice"}, callback=True)

    assert created["ok"] is True
    code = created["roomCode"]
    assert len(code) == 4
    assert created["players"][0]["name"] == "Alice"
    assert created["hostId"] == created["players"][0]["id"]
    assert created["nextAction"] == "ambo"
    assert created["drawIntervalMs"] == 3000

    bob = sio_factory()
    joined = bob.emit("joinRoom", {"roomCode": code, "playerName": "Bob"}, callback=True)
    assert joined["ok"] is True
    assert [p["name"] for p in joined["players"]] == ["Alice", "Bob"]

    updates = _events(alice.get_received(), "playersUpdate")
    assert [p["name"] for p in updates[-1][0]] == ["Alice", "Bob"]


def test_create_room_accepts_bare_name(sio_factory):
    alice = sio_factory()
    created = alice.emit("createRoom", "Alice", callback=True)
    assert created["players"] == [{"id": created["hostId"], "name": "Alice"}]


def test_join_errors_are_sent_to_requester_only(sio_factory):
    alice = sio_factory()
    code = alice.emit("createRoom", {"playerName": "Alice"}, callback=True)["roomCode"]
    alice.get_received()

    bob = sio_factory()
    missing = bob.emit("joinRoom", {"roomCode": "ZZZZ", "playerName": "Bob"}, callback=True)
    assert missing == {"ok": False, "error": "room_not_found", "message": "Stanza non trovata"}

    taken = bob.emit("joinRoom", {"roomCode": code, "playerName": "Alice"}, callback=True)
    assert taken["ok"] is False
    assert taken["error"] == "name_taken"

    assert len(_events(bob.get_received(), "error")) == 2
    assert _events(alice.get_received(), "error") == []


def test_start_game_flow(sio_factory, timers):
    alice = sio_factory()
    code = alice.emit("createRoom", {"playerName": "Alice"}, callback=True)["roomCode"]

    lonely = alice.emit("startGame", code, callback=True)
    assert lonely["error"] == "not_enough_players"

    bob = sio_factory()
    bob.emit("joinRoom", {"roomCode": code, "playerName": "Bob"}, callback=True)

    denied = bob.emit("startGame", code, callback=True)
    assert denied["error"] == "only_host"

    alice.get_received()
    bob.get_received()
    assert alice.emit("startGame", code, callback=True) == {"ok": True}

    received = bob.get_received()
    assert _names(received)[:2] == ["autoDrawResumed", "gameStarted"]

    timers.advance(6)
    drawn = [args[0] for args in _events(bob.get_received(), "numberDrawn")]
    assert len(drawn) == 2
    assert len(set(drawn)) == 2
    assert all(1 <= n <= 90 for n in drawn)


def test_draw_interval_and_pause(sio_factory):
    alice = sio_factory()
    code = alice.emit("createRoom", {"playerName": "Alice", "autoStart": True}, callback=True)["roomCode"]

    ack = alice.emit("setDrawInterval", {"roomCode": code, "ms": 20000}, callback=True)
    assert ack == {"ok": True, "drawIntervalMs": 15000}
    assert _events(alice.get_received(), "drawIntervalChanged")[-1] == [15000]

    assert alice.emit("pauseAutoDraw", code, callback=True) == {"ok": True}
    assert "autoDrawPaused" in _names(alice.get_received())

    assert alice.emit("resumeAutoDraw", {"roomCode": code}, callback=True) == {"ok": True}
    assert "autoDrawResumed" in _names(alice.get_received())


def test_declare_win_order(sio_factory):
    alice = sio_factory()
    created = alice.emit("createRoom", {"playerName": "Alice"}, callback=True)
    code = created["roomCode"]
    bob = sio_factory()
    bob_id = bob.emit("joinRoom", {"roomCode": code, "playerName": "Bob"}, callback=True)["players"][1]["id"]
    alice.emit("startGame", code, callback=True)
    alice.get_received()

    early = bob.emit("declareWin", {"roomCode": code, "action": "terna", "player": "Bob"}, callback=True)
    assert early["ok"] is False
    assert early["error"] == "out_of_order"

    won = bob.emit("declareWin", {"roomCode": code, "action": "ambo", "player": "Bob"}, callback=True)
    assert won["ok"] is True
    assert won["winnerId"] == bob_id
    assert won["nextAction"] == "terna"
    assert won["completedWinners"] == {"ambo": bob_id}

    received = alice.get_received()
    declared = _events(received, "winDeclared")
    assert declared[0][0]["player"] == "Bob"
    assert "autoDrawPaused" in _names(received)

    again = alice.emit("declareWin", {"roomCode": code, "pattern": "ambo", "displayName": "Alice"}, callback=True)
    assert again["error"] == "out_of_order"


def test_host_disconnect_migrates_host(sio_factory):
    alice = sio_factory()
    code = alice.emit("createRoom", {"playerName": "Alice"}, callback=True)["roomCode"]
    bob = sio_factory()
    bob_id = bob.emit("joinRoom", {"roomCode": code, "playerName": "Bob"}, callback=True)["players"][1]["id"]
    bob.get_received()

    alice.disconnect()

    received = bob.get_received()
    assert _events(received, "hostChanged") == [[{"hostId": bob_id}]]
    players = _events(received, "playersUpdate")[-1][0]
    assert [p["name"] for p in players] == ["Bob"]

    assert bob.emit("pauseAutoDraw", code, callback=True) == {"ok": True}


def test_leave_room_and_room_cleanup(sio_factory, client):
    alice = sio_factory()
    code = alice.emit("createRoom", {"playerName": "Alice"}, callback=True)["roomCode"]
    assert client.get(f"/api/rooms/{code}").status_code == 200

    assert alice.emit("leaveRoom", {"roomCode": code}, callback=True) == {"ok": True}
    assert client.get(f"/api/rooms/{code}").status_code == 404

    gone = alice.emit("leaveRoom", code, callback=True)
    assert gone["error"] == "room_not_found"


def test_rejoin_from_same_connection_is_rejected(sio_factory):
    alice = sio_factory()
    code = alice.emit("createRoom", {"playerName": "Alice"}, callback=True)["roomCode"]
    alice.get_received()

    again = alice.emit("joinRoom", {"roomCode": code, "playerName": "Alice2"}, callback=True)
    assert again["error"] == "already_in_room"
    assert _events(alice.get_received(), "error") == [[{"error": "already_in_room", "message": again["message"]}]]
