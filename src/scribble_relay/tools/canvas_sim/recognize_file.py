from __future__ import annotations

import argparse
import asyncio
import base64
import io
import json
from pathlib import Path

import websockets
from PIL import Image


def image_to_data_uri(path: Path, *, max_side: int = 1024) -> str:
    """
    Load an image and encode it the way the canvas front-end does.

    - transparent areas are flattened onto white (canvas background)
    - the longer side is capped at **max_side** px
    - returned as a `data:image/png;base64,` URI
    """
    with Image.open(path) as src:
        img = src.convert("RGBA")
    bg = Image.new("RGBA", img.size, (255, 255, 255, 255))
    img = Image.alpha_composite(bg, img).convert("RGB")
    img.thumbnail((max_side, max_side))

    bio = io.BytesIO()
    img.save(bio, format="PNG", optimize=True)
    return "data:image/png;base64," + base64.b64encode(bio.getvalue()).decode("ascii")


async def recognize_file(ws_url: str, path: Path, *, timeout_s: float = 60.0) -> str:
    """Send one recognize_image request and wait for the broadcast result."""
    frame = json.dumps({"type": "recognize_image", "image": image_to_data_uri(path)})
    async with websockets.connect(ws_url, max_size=2**22) as ws:
        await ws.send(frame)
        async with asyncio.timeout(timeout_s):
            async for raw in ws:
                msg = json.loads(raw)
                if isinstance(msg, dict) and msg.get("type") == "recognition_result":
                    return str(msg.get("text", ""))
    raise ConnectionError("connection closed before a recognition_result arrived")


def main() -> None:
    ap = argparse.ArgumentParser(description="Send an image file to the relay for recognition.")
    ap.add_argument("--ws", required=True, help="WebSocket URL, e.g. ws://127.0.0.1:8080/ws")
    ap.add_argument("image", help="Path to a PNG/JPEG of handwriting")
    ap.add_argument("--timeout", type=float, default=60.0, help="Seconds to wait for the result")
    args = ap.parse_args()

    print(asyncio.run(recognize_file(args.ws, Path(args.image), timeout_s=args.timeout)))


if __name__ == "__main__":
    main()
