import os

from backend.app.config import settings

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _avatar_files():
    directory = os.path.join(settings.web_root, "avatars")
    return sorted(os.listdir(directory)) if os.path.isdir(directory) else []


def test_get_profile(user):
    r = user.get("/api/user/profile")
    assert r.status_code == 200
    profile = r.json()["data"]
    assert profile["username"] == "alice"
    assert profile["email"] == "alice@example.com"
    assert profile["role"] == "user"
    assert profile["avatarUrl"] is None
    assert profile["profileDescription"] is None


def test_profile_requires_auth(client):
    assert client.get("/api/user/profile").status_code == 401


def test_update_description(user):
    r = user.put("/api/user/profile/description", json={"profileDescription": "  Film buff  "})
    assert r.status_code == 200
    assert r.json()["data"]["profileDescription"] == "Film buff"

    r = user.put("/api/user/profile/description", json={"profileDescription": "   "})
    assert r.json()["data"]["profileDescription"] is None

    r = user.put("/api/user/profile/description", json={"profileDescription": "x" * 2001})
    assert r.status_code == 400
    assert r.json()["message"] == "Описание профиля не может превышать 2000 символов."


def test_upload_avatar_replaces_previous_file(user, db):
    r = user.post("/api/user/profile/avatar", files={"avatar": ("me.PNG", PNG_BYTES, "image/png")})
    assert r.status_code == 200, r.text
    first_url = r.json()["data"]["avatarUrl"]
    user_id = r.json()["data"]["userId"]
    assert first_url.startswith(f"/avatars/avatar_user_{user_id}_")
    assert first_url.endswith(".png")
    assert _avatar_files() == [os.path.basename(first_url)]

    r = user.post("/api/user/profile/avatar", files={"avatar": ("me.webp", b"webp-data", "image/webp")})
    assert r.status_code == 200
    second_url = r.json()["data"]["avatarUrl"]
    assert second_url != first_url
    assert _avatar_files() == [os.path.basename(second_url)]

    with open(os.path.join(settings.web_root, "avatars", os.path.basename(second_url)), "rb") as f:
        assert f.read() == b"webp-data"


def test_upload_avatar_rejections(user, monkeypatch):
    r = user.post("/api/user/profile/avatar", files={"avatar": ("me.gif", b"GIF89a", "image/gif")})
    assert r.status_code == 400
    assert r.json()["message"] == "Допустимые форматы: jpg, jpeg, png, webp."

    r = user.post("/api/user/profile/avatar", files={"avatar": ("me.png", b"", "image/png")})
    assert r.status_code == 400

    monkeypatch.setattr(settings, "max_avatar_bytes", 16)
    r = user.post("/api/user/profile/avatar", files={"avatar": ("me.png", b"x" * 17, "image/png")})
    assert r.status_code == 400
    assert r.json()["message"] == "Размер файла должен быть больше 0 и не превышать 4 МБ."

    r = user.post("/api/user/profile/avatar", data={"other": "field"})
    assert r.status_code == 400
    assert r.json()["message"] == "Файл аватара не найден."

    assert _avatar_files() == []
