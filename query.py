import os
import sys

import requests

SERVER_URL = "http://localhost:3000/predict"


def send_image(path, server_url=SERVER_URL, model=None) -> dict:
    data = {"model": model} if model else None
    with open(path, "rb") as f:
        response = requests.post(
            server_url,
            files={"file": (os.path.basename(path), f)},
            data=data,
            timeout=60,
        )
    return response.json()


def describe(result: dict) -> str:
    if "error" in result:
        return f"ERROR: {result['error']}"
    probs = result["prediction"][0]
    return ", ".join(f"{label}={p:.4f}" for label, p in zip(result["class_labels"], probs))


def main():
    if len(sys.argv) < 2:
        print("usage: python query.py <image> [n] [url]")
        sys.exit(1)
    path = sys.argv[1]
    n = int(sys.argv[2]) if len(sys.argv) > 2 else 1
    server_url = sys.argv[3] if len(sys.argv) > 3 else SERVER_URL

    for i in range(n):
        result = send_image(path, server_url)
        print(f"Query {i+1}: {describe(result)}")


if __name__ == "__main__":
    main()
