import asyncio
import io
import sys

import httpx
import numpy as np
from PIL import Image

URL = "http://localhost:3000/predict"


def random_png(size=64) -> bytes:
    pixels = np.random.randint(0, 256, size=(size, size, 3), dtype=np.uint8)
    buf = io.BytesIO()
    Image.fromarray(pixels).save(buf, format="PNG")
    return buf.getvalue()


async def make_request(i, client, url=URL):
    try:
        files = {"file": (f"client-{i}.png", random_png(), "image/png")}
        resp = await client.post(url, files=files, timeout=100)
        data = resp.json()
        if resp.status_code == 200:
            print(f"[Client] {i} -> {data['prediction'][0]}")
        else:
            print(f"[Client] {i} -> {resp.status_code}: {data.get('error')}")
        return data
    except Exception as e:
        print(f"[Client] {i} -> ERROR: {e}")
        return {"error": str(e)}


async def request_loop(url=URL, rate_per_sec=5):
    """Continuously send requests at a fixed rate per second."""
    interval = 1.0 / rate_per_sec
    i = 0
    async with httpx.AsyncClient() as client:
        while True:
            asyncio.create_task(make_request(i, client, url))
            i += 1
            await asyncio.sleep(interval)


if __name__ == "__main__":
    rate = float(sys.argv[1]) if len(sys.argv) > 1 else 5
    url = sys.argv[2] if len(sys.argv) > 2 else URL
    asyncio.run(request_loop(url, rate_per_sec=rate))
