import pytest

from planning_poker.realtime.dispatcher import CapabilityDispatcher, Command, Tier


def test_malformed_frames_get_an_error_reply(engine, dispatcher, transport):
    client = engine.connect("sid-1")
    for frame in ("not json", "[1, 2]", '{"MethodArguments": []}', '{"MethodName": "UndoVote", "MethodArguments": [1]}'):
        assert not dispatcher.dispatch(client, frame)

    errors = transport.errors(client.sid)
    assert len(errors) == 4
    assert all(e["Source"] == "ReceiveMessage" for e in errors)
    assert errors[0]["ErrorMessage"] == "Server request was not in JSON format."


def test_unknown_command_is_reported(engine, dispatcher, transport):
    client = engine.connect("sid-1")
    assert not dispatcher.dispatch(client, '{"MethodName": "Explode", "MethodArguments": []}')
    (err,) = transport.errors(client.sid)
    assert err["Source"] == "ReceiveMessage"
    assert "Explode" in err["ErrorMessage"]


def test_unknown_command_can_be_silent(engine, transport):
    quiet = CapabilityDispatcher(engine, [], report_unknown=False)
    client = engine.connect("sid-1")
    assert not quiet.dispatch(client, '{"MethodName": "Explode"}')
    assert transport.to(client.sid) == []


def test_command_names_are_case_insensitive(engine, call, transport):
    client = engine.connect("sid-1")
    assert call(client, "registerclient", "alice", "0")
    assert client.name == "alice"
    assert transport.last(client.sid, "RegisterClient")["ClientID"] == client.id


def test_admin_commands_need_admin(engine, call, transport):
    client = engine.connect("sid-1")
    call(client, "RegisterClient", "alice", "0")
    transport.clear()

    assert not call(client, "NewRoundRequest", "Story")
    (err,) = transport.errors(client.sid)
    assert err["Source"] == "SecurityFailure"
    assert err["ErrorMessage"] == "You are not authorized to perform this function."
    assert engine.rounds.rounds == []

    call(client, "RegisterAdmin", "secret")
    assert call(client, "NewRoundRequest", "Story")
    assert engine.rounds.active.title == "Story"


def test_wrong_password(engine, call, transport):
    client = engine.connect("sid-1")
    call(client, "RegisterClient", "alice", "0")
    call(client, "RegisterAdmin", "wrong")
    assert any(e["Source"] == "RegisterAdmin" for e in transport.errors(client.sid))
    assert not engine.is_admin(client)


def test_registration_required_for_standard_commands(engine, call, transport):
    client = engine.connect("sid-1")
    assert not call(client, "RegisterVote", "5")
    (err,) = transport.errors(client.sid)
    assert err["Source"] == "RegisterVote"


def test_argument_count_is_checked(engine, call, transport):
    client = engine.connect("sid-1")
    assert not call(client, "RegisterClient", "alice")
    assert not call(client, "RegisterClient", "alice", "0", "extra")
    errors = transport.errors(client.sid)
    assert [e["Source"] for e in errors] == ["RegisterClient", "RegisterClient"]
    assert not client.registered


def test_registering_again_keeps_the_name(engine, call, transport):
    client = engine.connect("sid-1")
    call(client, "RegisterClient", "alice", "0")
    engine.begin_round("Story")
    assert call(client, "RegisterVote", "1")

    call(client, "RegisterClient", "alice2", "0")
    assert client.name == "alice"
    call(client, "RegisterVote", "1")
    assert [(v.client_name, v.value) for v in engine.rounds.active.votes] == [("alice", "1")]

    call(client, "RegisterClient", "alice3", "1")
    assert client.is_spectator
    assert client.name == "alice"


def test_handler_failure_is_contained(engine, transport):
    def explode(engine, client):
        raise RuntimeError("boom")

    d = CapabilityDispatcher(engine, [Command("Explode", explode, Tier.STANDARD, requires_registration=False)])
    client = engine.connect("sid-1")
    assert not d.dispatch(client, '{"MethodName": "Explode", "MethodArguments": []}')
    (err,) = transport.errors(client.sid)
    assert err["Source"] == "Explode"


def test_duplicate_registration_rejected(engine):
    d = CapabilityDispatcher(engine)
    d.register(Command("Ping", lambda engine, client: None))
    with pytest.raises(ValueError):
        d.register(Command("PING", lambda engine, client: None))


def test_vote_flow_replies(engine, call, transport, scheduler):
    admin = engine.connect("sid-admin")
    call(admin, "RegisterClient", "mod", "1")
    call(admin, "RegisterAdmin", "secret")
    alice = engine.connect("sid-alice")
    call(alice, "RegisterClient", "alice", "0")
    bob = engine.connect("sid-bob")
    call(bob, "RegisterClient", "bob", "0")

    call(admin, "NewRoundRequest", "Story")
    call(alice, "RegisterVote", "5")
    assert "RegisterVote" in transport.commands(alice.sid)

    call(alice, "RegisterVote", "8")
    assert transport.errors(alice.sid)[-1]["Source"] == "RegisterVote"

    call(alice, "UndoVote")
    assert "UndoVote" in transport.commands(alice.sid)
    call(alice, "UndoVote")
    assert transport.errors(alice.sid)[-1]["Source"] == "UndoVote"

    call(alice, "RegisterVote", "8")
    call(bob, "RegisterVote", "2")
    assert "LockUndo" in transport.commands(bob.sid)

    call(admin, "SortCards")
    assert transport.errors(admin.sid)[-1]["Source"] == "SortCards"

    call(admin, "FlipCards")
    assert "FlipCards" in transport.commands(admin.sid)
    call(admin, "SortCards")
    assert "SortCards" in transport.commands(admin.sid)
    assert [v.value for v in engine.rounds.active.votes] == ["2", "8"]

    call(admin, "TakeMajority")
    assert transport.errors(admin.sid)[-1]["Source"] == "TakeMajority"

    call(admin, "FinalizeVote", "4")
    assert transport.errors(admin.sid)[-1]["Source"] == "FinalizeVote"
    call(admin, "FinalizeVote", "5")
    assert transport.last(admin.sid, "FinalizeVote")["Decision"] == "5"
    assert engine.rounds.active is None

    call(admin, "RestartRound")
    assert transport.errors(admin.sid)[-1]["Source"] == "RestartRound"

    # The stale timer from the completed vote does nothing.
    scheduler.run_pending()
    assert engine.rounds.rounds[0].flipped


def test_card_and_setting_commands(engine, call, transport):
    admin = engine.connect("sid-admin")
    call(admin, "RegisterClient", "mod", "0")
    call(admin, "RegisterAdmin", "secret")

    call(admin, "GetCardList")
    assert transport.last(admin.sid, "GetCardList")["CardList"] == "½, 1, 2, 3, 5, 8, 13, 20, 30, 50, 100, ?"

    call(admin, "SetCards", "XS")
    assert "at least two cards" in transport.errors(admin.sid)[-1]["ErrorMessage"]

    call(admin, "NewRoundRequest", "Story")
    call(admin, "SetCards", "XS, S, M")
    assert "while a round is active" in transport.errors(admin.sid)[-1]["ErrorMessage"]

    call(admin, "DiscardActiveRound")
    assert "DiscardActiveRound" in transport.commands(admin.sid)
    call(admin, "SetCards", "XS, S, M")
    assert "SetCards" in transport.commands(admin.sid)
    assert transport.last(admin.sid, "GameState")["Data"]["CardSet"] == "XS,S,M"

    call(admin, "SetSetting", "AutoSort", "1")
    assert engine.get_setting("AutoSort") == "1"
    assert transport.last(admin.sid, "SetSetting") == {
        "Command": "SetSetting",
        "Error": False,
        "Key": "AutoSort",
        "Value": "1",
    }


def test_new_round_refused_while_active(engine, call, transport):
    admin = engine.connect("sid-admin")
    call(admin, "RegisterClient", "mod", "0")
    call(admin, "RegisterAdmin", "secret")
    call(admin, "NewRoundRequest", "One")
    call(admin, "NewRoundRequest", "Two")
    assert transport.errors(admin.sid)[-1]["Source"] == "NewRoundRequest"
    assert [r.title for r in engine.rounds.rounds] == ["One"]
