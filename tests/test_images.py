import base64
from io import BytesIO

import pytest
from PIL import Image

from conftest import png_base64
from easystyle.core.auth import resolve_user
from easystyle.services.images import decode_upload, split_data_url


def _bmp_base64():
    buffer = BytesIO()
    Image.new("RGB", (4, 4), (10, 20, 30)).save(buffer, "BMP")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def test_png_data_url_is_kept():
    payload = png_base64()
    image = decode_upload(f"data:image/png;base64,{payload}")
    assert image.mime_type == "image/png"
    assert image.base64 == payload


def test_bytes_decide_the_type():
    # Declared as JPEG, actually PNG
    image = decode_upload(f"data:image/jpeg;base64,{png_base64()}")
    assert image.mime_type == "image/png"


def test_unsupported_format_converted_to_jpeg():
    image = decode_upload(_bmp_base64())
    assert image.mime_type == "image/jpeg"
    with Image.open(BytesIO(base64.b64decode(image.base64))) as img:
        assert img.format == "JPEG"


def test_rejects_garbage_and_oversize():
    with pytest.raises(ValueError):
        decode_upload("%%%not base64%%%")
    with pytest.raises(ValueError):
        decode_upload(base64.b64encode(b"plain text").decode("ascii"))
    with pytest.raises(ValueError):
        decode_upload(png_base64(), max_bytes=10)


def test_split_data_url():
    assert split_data_url("data:image/webp;base64,AAAA") == ("image/webp", "AAAA")
    assert split_data_url("AAAA") == (None, "AAAA")


def test_resolve_user(database_url):
    user = resolve_user("  Admin@EasyStyle.com ")
    assert user.email == "admin@easystyle.com"
    assert user.is_admin

    assert not resolve_user("kim@example.com").is_admin
    with pytest.raises(PermissionError):
        resolve_user("")
    with pytest.raises(PermissionError):
        resolve_user("kim")
