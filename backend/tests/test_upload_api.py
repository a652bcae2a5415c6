import pytest
from sqlalchemy.exc import OperationalError

from backend.app.core.config import settings
from backend.app.services.uploads import is_valid_path, sniff_image_type
from backend.app.storage.blob import BlobStore

UPLOAD_URL = f"{settings.API_V1_STR}/upload-image"

JPEG = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 64
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
WEBP = b"RIFF\x24\x00\x00\x00WEBPVP8 " + b"\x00" * 64
GIF = b"GIF89a" + b"\x00" * 64


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


async def _upload(client, path, content, token, filename="image.png", mime="image/png"):
    data = {}
    if path is not None:
        data["path"] = path
    if token is not None:
        data["sessionToken"] = token
    return await client.post(UPLOAD_URL, data=data, files={"file": (filename, content, mime)})


@pytest.mark.parametrize(
    "content, expected",
    [(JPEG, "image/jpeg"), (PNG, "image/png"), (WEBP, "image/webp"), (GIF, "image/gif"),
     (b"RIFF\x00\x00\x00\x00WAVE", None), (b"<svg></svg>", None), (b"", None)],
)
def test_sniff_image_type(content, expected):
    assert sniff_image_type(content) == expected


@pytest.mark.parametrize(
    "path, ok",
    [
        ("projects/cover.png", True),
        ("settings/og-image_1.webp", True),
        ("projects/../secrets.png", False),
        ("/projects/cover.png", False),
        ("avatars/me.png", False),
        ("projects/cover image.png", False),
        ("", False),
    ],
)
def test_is_valid_path(path, ok):
    assert is_valid_path(path) is ok


@pytest.mark.asyncio
async def test_content_type_comes_from_bytes(client, session_token, upload_dir):
    # .png name and image/png header, JPEG bytes
    response = await _upload(client, "projects/cover.png", JPEG, session_token)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["path"] == "projects/cover.png"
    assert body["publicUrl"].endswith(f"{settings.API_V1_STR}/media/projects/cover.png")
    assert (upload_dir / "projects" / "cover.png").read_bytes() == JPEG

    served = await client.get(f"{settings.API_V1_STR}/media/projects/cover.png")
    assert served.status_code == 200
    assert served.headers["content-type"] == "image/jpeg"
    assert served.content == JPEG


@pytest.mark.asyncio
async def test_overwrite_updates_content_type(client, session_token):
    await _upload(client, "settings/og.img", PNG, session_token)
    await _upload(client, "settings/og.img", GIF, session_token)

    served = await client.get(f"{settings.API_V1_STR}/media/settings/og.img")
    assert served.headers["content-type"] == "image/gif"


@pytest.mark.asyncio
async def test_unknown_format_rejected(client, session_token, upload_dir):
    response = await _upload(client, "projects/page.png", b"<html>not an image</html>", session_token)
    assert response.status_code == 400
    assert response.json()["reason"] == "invalid_input"
    assert not any(upload_dir.iterdir())


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["projects/../../etc/passwd", "/projects/a.png", "other/a.png", "projects/a b.png"])
async def test_bad_paths_rejected(client, session_token, upload_dir, path):
    response = await _upload(client, path, PNG, session_token)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid file path"
    assert not any(upload_dir.iterdir())


@pytest.mark.asyncio
async def test_too_large_rejected(client, session_token, upload_dir, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_MAX_BYTES", 32)
    response = await _upload(client, "projects/big.png", PNG, session_token)
    assert response.status_code == 400
    assert "too large" in response.json()["error"]
    assert not any(upload_dir.iterdir())


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, "garbage"])
async def test_requires_session(client, upload_dir, token):
    response = await _upload(client, "projects/cover.png", PNG, token)
    assert response.status_code == 401
    assert response.json()["sessionExpired"] is True
    assert not any(upload_dir.iterdir())


@pytest.mark.asyncio
async def test_missing_path(client, session_token):
    response = await _upload(client, None, PNG, session_token)
    assert response.status_code == 400
    assert response.json()["reason"] == "missing_input"


@pytest.mark.asyncio
async def test_missing_media(client):
    response = await client.get(f"{settings.API_V1_STR}/media/projects/nothing.png")
    assert response.status_code == 404


def _fail_commits(db, monkeypatch):
    async def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", failing_commit)


@pytest.mark.asyncio
async def test_failed_overwrite_keeps_previous_image(db, upload_dir, monkeypatch):
    blobs = BlobStore(db)
    await blobs.put("projects/cover.png", PNG, "image/png")

    _fail_commits(db, monkeypatch)
    with pytest.raises(OperationalError):
        await blobs.put("projects/cover.png", JPEG, "image/jpeg")

    file_path, content_type = await blobs.get("projects/cover.png")
    assert content_type == "image/png"
    assert file_path.read_bytes() == PNG
    assert [p.name for p in (upload_dir / "projects").iterdir()] == ["cover.png"]


@pytest.mark.asyncio
async def test_failed_first_upload_leaves_no_file(db, upload_dir, monkeypatch):
    blobs = BlobStore(db)
    _fail_commits(db, monkeypatch)
    with pytest.raises(OperationalError):
        await blobs.put("projects/new.png", PNG, "image/png")

    assert await blobs.get("projects/new.png") is None
    assert not any(p.is_file() for p in upload_dir.rglob("*"))


@pytest.mark.asyncio
async def test_failed_upload_is_reported_as_storage_error(client, session_token, db, upload_dir, monkeypatch):
    # Patching the class reaches the session opened for the request
    async def failing_put(self, path, content, content_type):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(BlobStore, "put", failing_put)
    response = await _upload(client, "projects/cover.png", JPEG, session_token)
    assert response.status_code == 500
    assert response.json()["reason"] == "persistence_failure"
    assert "disk full" not in response.text
