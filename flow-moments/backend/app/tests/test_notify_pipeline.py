# backend/app/tests/test_notify_pipeline.py
import pytest

from app.core.errors import AuthError, StoreLookupError
from app.models.notification import PipelineState
from app.models.post import PostEvent
from app.tests.fakes import FakeFriendships, FakeProfiles, RecordingDispatcher, StubMinter, conn, failing_minter

pytestmark = pytest.mark.asyncio

EVENT = PostEvent(author_id="U1", post_id="p-1")


async def test_friend_with_token_gets_one_delivery(make_pipeline):
    friendships = FakeFriendships([conn("U1", "U2"), conn("U3", "U1")])
    profiles = FakeProfiles({"U1": {"username": "zoe"}, "U2": {"fcm_token": "tok-2"}, "U3": {}})
    dispatcher = RecordingDispatcher()

    result = await make_pipeline(friendships, profiles, StubMinter(), dispatcher).run(EVENT)

    assert result.state is PipelineState.DONE
    assert result.notified == 1
    assert dispatcher.calls[0]["tokens"] == ["tok-2"]
    assert dispatcher.calls[0]["message"].body == "zoe just shared a new moment!"
    assert dispatcher.calls[0]["access_token"].value == "ya29.test-token"


async def test_failed_delivery_still_counts_as_notified(make_pipeline):
    friendships = FakeFriendships([conn("U1", "U2")])
    profiles = FakeProfiles({"U2": {"fcm_token": "tok-2"}})

    result = await make_pipeline(friendships, profiles, StubMinter(), RecordingDispatcher({"tok-2"})).run(EVENT)

    assert result.notified == 1
    assert result.delivered == 0
    assert result.failed == 1
    assert result.to_response()["success"] is True


async def test_no_connections_short_circuits_even_if_auth_fails(make_pipeline):
    dispatcher = RecordingDispatcher()
    result = await make_pipeline(FakeFriendships([]), FakeProfiles(), failing_minter(), dispatcher).run(EVENT)

    assert result.state is PipelineState.NO_RECIPIENTS
    assert result.notified == 0
    assert dispatcher.calls == []


async def test_no_tokens_never_dispatches(make_pipeline):
    friendships = FakeFriendships([conn("U1", "U2"), conn("U1", "U3")])
    profiles = FakeProfiles({"U2": {"fcm_token": None}})
    dispatcher = RecordingDispatcher()

    result = await make_pipeline(friendships, profiles, StubMinter(delay=0.5), dispatcher).run(EVENT)

    assert result.state is PipelineState.NO_TOKENS
    assert result.notified == 0
    assert dispatcher.calls == []


async def test_shared_token_yields_single_outcome(make_pipeline):
    friendships = FakeFriendships([conn("U1", "U2"), conn("U3", "U1")])
    profiles = FakeProfiles({"U2": {"fcm_token": "tok-shared"}, "U3": {"fcm_token": "tok-shared"}})

    result = await make_pipeline(friendships, profiles, StubMinter(), RecordingDispatcher()).run(EVENT)

    assert result.notified == 1


async def test_auth_failure_is_fatal_and_skips_dispatch(make_pipeline):
    friendships = FakeFriendships([conn("U1", "U2")])
    profiles = FakeProfiles({"U2": {"fcm_token": "tok-2"}})
    dispatcher = RecordingDispatcher()

    with pytest.raises(AuthError):
        await make_pipeline(friendships, profiles, failing_minter(), dispatcher).run(EVENT)
    assert dispatcher.calls == []


async def test_lookup_failure_is_fatal(make_pipeline):
    profiles = FakeProfiles(error=StoreLookupError("profiles no disponible"))
    dispatcher = RecordingDispatcher()

    with pytest.raises(StoreLookupError):
        await make_pipeline(FakeFriendships([conn("U1", "U2")]), profiles, StubMinter(), dispatcher).run(EVENT)
    assert dispatcher.calls == []


async def test_author_name_falls_back_to_placeholder(make_pipeline):
    friendships = FakeFriendships([conn("U1", "U2")])
    profiles = FakeProfiles({"U2": {"fcm_token": "tok-2"}}, name_error=StoreLookupError("timeout"))
    dispatcher = RecordingDispatcher()

    await make_pipeline(friendships, profiles, StubMinter(), dispatcher).run(EVENT)

    assert dispatcher.calls[0]["message"].body == "a friend just shared a new moment!"


async def test_unregistered_tokens_pruned_when_enabled(make_pipeline):
    friendships = FakeFriendships([conn("U1", "U2"), conn("U1", "U3")])
    profiles = FakeProfiles({"U2": {"fcm_token": "tok-2"}, "U3": {"fcm_token": "tok-3"}})
    dispatcher = RecordingDispatcher({"tok-3"}, error_code="UNREGISTERED")

    result = await make_pipeline(friendships, profiles, StubMinter(), dispatcher, prune_unregistered=True).run(EVENT)

    assert result.notified == 2
    assert profiles.cleared == ["tok-3"]


async def test_unregistered_tokens_kept_by_default(make_pipeline):
    friendships = FakeFriendships([conn("U1", "U2")])
    profiles = FakeProfiles({"U2": {"fcm_token": "tok-2"}})
    dispatcher = RecordingDispatcher({"tok-2"}, error_code="UNREGISTERED")

    await make_pipeline(friendships, profiles, StubMinter(), dispatcher).run(EVENT)

    assert profiles.cleared == []


async def test_prune_failure_does_not_fail_invocation(make_pipeline):
    friendships = FakeFriendships([conn("U1", "U2"), conn("U1", "U3")])
    profiles = FakeProfiles(
        {"U2": {"fcm_token": "tok-2"}, "U3": {"fcm_token": "tok-3"}},
        clear_error=StoreLookupError("mongo caído"),
    )
    dispatcher = RecordingDispatcher({"tok-3"}, error_code="UNREGISTERED")

    result = await make_pipeline(friendships, profiles, StubMinter(), dispatcher, prune_unregistered=True).run(EVENT)

    assert result.state is PipelineState.DONE
    assert result.notified == 2
    assert result.to_response()["success"] is True
    assert profiles.cleared == []
