# flake8: noqa
import time

import httpx
import jwt

from recipi.client import ClientContext, ProfilePatch, Session, UserProfileController
from conftest import CHILI


def test_load_profile_and_ownership(client, context, auth):
    client.post("/recipes", data=CHILI, headers=auth)
    profile = UserProfileController(client, context)
    result = profile.load_profile("maria")
    assert result.ok
    assert profile.loading is False
    assert profile.error is None
    assert profile.profile["username"] == "maria"
    assert [r["slug"] for r in profile.recipes] == ["chili-verde"]
    assert profile.is_owner is True


def test_visitor_is_not_owner(client, register):
    register("maria")
    visitor = ClientContext(session=Session(register("pedro")))
    profile = UserProfileController(client, visitor)
    assert profile.load_profile("maria").ok
    assert profile.is_owner is False

    anonymous = UserProfileController(client, ClientContext())
    assert anonymous.load_profile("maria").ok
    assert anonymous.is_owner is False


def test_load_missing_profile_sets_error(client):
    profile = UserProfileController(client, ClientContext())
    result = profile.load_profile("ghost")
    assert result.ok is False
    assert result.status == 404
    assert profile.error == "Error fetching data: User not found"
    assert profile.loading is False
    assert profile.is_owner is False


def test_expired_token_is_dropped_before_loading(client, register):
    register("maria")
    stale = jwt.encode(
        {"sub": "1", "username": "maria", "exp": int(time.time()) - 60},
        "some-other-signing-key-0123456789",
        algorithm="HS256",
    )
    context = ClientContext(session=Session(stale))
    profile = UserProfileController(client, context)
    assert profile.load_profile("maria").ok
    assert context.session.token is None
    assert profile.is_owner is False


def test_patch_sends_only_changed_fields():
    patch = ProfilePatch(bio="Hello")
    assert patch.changed() == {"bio": "Hello"}
    assert patch.multipart() == [("bio", (None, "Hello"))]
    assert ProfilePatch().is_empty()
    assert not ProfilePatch(file=("me.png", b"x", "image/png")).is_empty()


def test_update_profile_replaces_token_and_reloads(client, context):
    old_token = context.session.token
    profile = UserProfileController(client, context)
    profile.load_profile("maria")

    result = profile.update_profile(ProfilePatch(username="maria2", bio="I cook"))
    assert result.ok, result.error
    assert context.session.token != old_token
    assert context.session.username == "maria2"
    assert context.navigator.location == "/users/maria2"
    assert context.navigator.reloads == 1
    assert profile.profile["bio"] == "I cook"
    assert "token" not in profile.profile

    # the new token works against the API
    res = client.get("/users/user", headers=context.session.auth_headers())
    assert res.json()["username"] == "maria2"


def test_update_profile_error_is_toasted(client, context, register):
    register("pedro")
    profile = UserProfileController(client, context)
    result = profile.update_profile(ProfilePatch(username="pedro"))
    assert result.ok is False
    assert context.toaster.last.title == "Username is already taken"
    assert context.navigator.reloads == 0
    assert context.session.username == "maria"


def test_update_profile_validation_message(client, context):
    profile = UserProfileController(client, context)
    result = profile.update_profile(ProfilePatch(bio="x" * 201))
    assert result.ok is False
    assert result.status == 422
    assert "200" in context.toaster.last.title


def test_update_profile_fallback_message():
    http = httpx.Client(
        transport=httpx.MockTransport(lambda request: httpx.Response(500, text="oops")),
        base_url="http://api.test",
    )
    context = ClientContext(session=Session("t"))
    result = UserProfileController(http, context).update_profile(ProfilePatch(bio="hi"))
    assert result.ok is False
    assert context.toaster.last.title == "There has been an error updating your account"


def test_delete_profile_clears_token(client, context):
    profile = UserProfileController(client, context)
    profile.load_profile("maria")
    result = profile.delete_profile()
    assert result.ok
    assert context.session.token is None
    assert context.navigator.location == "/"
    assert context.navigator.reloads == 1
    assert client.get("/users/maria").status_code == 404
