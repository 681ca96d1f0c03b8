# flake8: noqa
from pathlib import Path

import jwt

from recipi.auth import decode_token
from recipi.config import CONFIG


def test_register_returns_token(client):
    res = client.post(
        "/users",
        json={"username": "maria", "email": "maria@example.com", "password": "secret-pw"},
    )
    assert res.status_code == 201
    user = res.json()["user"]
    assert user["username"] == "maria"
    assert user["bio"] == ""
    claims = decode_token(user["token"])
    assert claims["username"] == "maria"
    assert "password" not in user and "password_hash" not in user


def test_duplicate_username_and_email(client, register):
    register("maria")
    res = client.post(
        "/users",
        json={"username": "maria", "email": "other@example.com", "password": "secret-pw"},
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "Username is already taken"

    res = client.post(
        "/users",
        json={"username": "other", "email": "maria@example.com", "password": "secret-pw"},
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "Email is already registered"


def test_reserved_and_invalid_usernames(client):
    for name in ("user", "has space"):
        res = client.post(
            "/users",
            json={"username": name, "email": "x@example.com", "password": "secret-pw"},
        )
        assert res.status_code == 422


def test_login(client, register):
    register("maria", password="secret-pw")
    res = client.post(
        "/users/login", json={"user": {"email": "maria@example.com", "password": "secret-pw"}}
    )
    assert res.status_code == 200
    assert decode_token(res.json()["user"]["token"])["username"] == "maria"

    res = client.post(
        "/users/login", json={"email": "maria@example.com", "password": "wrong-pw"}
    )
    assert res.status_code == 401


def test_current_user(client, auth):
    assert client.get("/users/user").status_code == 401
    res = client.get("/users/user", headers=auth)
    assert res.status_code == 200
    assert res.json()["username"] == "maria"


def test_profile_lists_recipes(client, chili):
    res = client.get("/users/maria")
    assert res.status_code == 200
    data = res.json()
    assert data["username"] == "maria"
    assert [r["slug"] for r in data["recipes"]] == ["chili-verde"]

    assert client.get("/users/nobody").status_code == 404


def test_patch_only_changed_fields(client, auth):
    res = client.patch("/users/user", data={"bio": "I cook things"}, headers=auth)
    assert res.status_code == 200
    user = res.json()["user"]
    assert user["bio"] == "I cook things"
    assert user["username"] == "maria"
    assert user["email"] == "maria@example.com"

    # an empty bio in a later patch means "unchanged"
    res = client.patch("/users/user", data={"bio": "", "email": "m@example.org"}, headers=auth)
    assert res.json()["user"]["bio"] == "I cook things"
    assert res.json()["user"]["email"] == "m@example.org"


def test_username_change_reissues_token(client, auth, chili):
    res = client.patch("/users/user", data={"username": "maria2"}, headers=auth)
    assert res.status_code == 200
    token = res.json()["user"]["token"]
    assert decode_token(token)["username"] == "maria2"

    # recipes follow the user
    profile = client.get("/users/maria2").json()
    assert [r["slug"] for r in profile["recipes"]] == ["chili-verde"]
    assert client.get("/recipes/chili-verde").json()["author"] == "maria2"
    assert client.get("/users/maria").status_code == 404


def test_patch_username_taken(client, register, auth):
    register("pedro")
    res = client.patch("/users/user", data={"username": "pedro"}, headers=auth)
    assert res.status_code == 400
    assert res.json()["detail"] == "Username is already taken"


def test_patch_bio_too_long(client, auth):
    res = client.patch("/users/user", data={"bio": "x" * 201}, headers=auth)
    assert res.status_code == 422


def test_profile_picture_upload(client, auth):
    res = client.patch(
        "/users/user",
        files={"file": ("me.jpg", b"jpeg bytes", "image/jpeg")},
        headers=auth,
    )
    assert res.status_code == 200
    image = res.json()["user"]["image"]
    assert image.startswith("/media/") and image.endswith(".jpg")

    res = client.patch(
        "/users/user",
        files={"file": ("me.png", b"png bytes", "image/png")},
        headers=auth,
    )
    assert res.json()["user"]["image"].endswith(".png")
    assert not (CONFIG.media_dir / Path(image).name).exists()


def test_delete_account_removes_recipes(client, auth, chili):
    res = client.delete("/users/user", headers=auth)
    assert res.status_code == 200
    assert res.json() == {"deleted": True}
    assert client.get("/recipes").json() == []
    assert client.get("/users/maria").status_code == 404
    # the old token no longer maps to a user
    assert client.get("/users/user", headers=auth).status_code == 401


def test_expired_token_is_rejected(client, token):
    claims = decode_token(token)
    claims["exp"] = claims["iat"] - 10
    expired = jwt.encode(claims, CONFIG.secret_key, algorithm="HS256")
    res = client.get("/users/user", headers={"Authorization": f"Bearer {expired}"})
    assert res.status_code == 401
