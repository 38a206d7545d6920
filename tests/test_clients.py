import asyncio
import io

import httpx
from PIL import Image

import query
from app import create_app
from config import ServiceConfig
from continuous_clients import make_request, random_png


def test_random_png_decodes():
    img = Image.open(io.BytesIO(random_png(size=16)))
    assert img.format == "PNG"
    assert img.size == (16, 16)


def test_describe_pairs_labels():
    result = {"prediction": [[0.25, 0.5, 0.25]], "class_labels": ["a", "b", "c"]}
    assert query.describe(result) == "a=0.2500, b=0.5000, c=0.2500"
    assert query.describe({"error": "No model files found"}) == "ERROR: No model files found"


def test_send_image_posts_file(tmp_path, monkeypatch, white_png):
    path = tmp_path / "white.png"
    path.write_bytes(white_png)
    seen = {}

    class FakeResponse:
        def json(self):
            return {"error": "No model files found"}

    def fake_post(url, files=None, data=None, timeout=None):
        name, f = files["file"]
        seen.update(url=url, name=name, body=f.read(), data=data)
        return FakeResponse()

    monkeypatch.setattr(query.requests, "post", fake_post)
    result = query.send_image(path, "http://example/predict", model="leaf")
    assert result == {"error": "No model files found"}
    assert seen == {"url": "http://example/predict", "name": "white.png", "body": white_png, "data": {"model": "leaf"}}


def test_make_request_against_app(tmp_path):
    # no lifespan here; the upload handler creates its own directory
    app = create_app(ServiceConfig(root=tmp_path))

    async def run():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            return await make_request(7, client, "http://test/predict")

    data = asyncio.run(run())
    assert data == {"error": "No model files found"}
    assert any(p.name.endswith("-client-7.png") for p in (tmp_path / "static" / "uploads").iterdir())
