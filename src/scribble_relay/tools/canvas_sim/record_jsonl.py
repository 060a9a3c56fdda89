from __future__ import annotations

import argparse
import asyncio
import json
import time
from pathlib import Path

import websockets


def _now_ms() -> int:
    return int(time.time() * 1000)


def _decode(raw: str | bytes) -> object:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        # keep non-JSON frames so a replay reproduces them as-is
        return raw


async def record(ws_url: str, out_path: Path, *, echo: bool, skip_hello: bool = True) -> None:
    """Append every frame received on `ws_url` to `out_path` as {"ts", "msg"} lines."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("a", encoding="utf-8") as f:
        async with websockets.connect(ws_url, max_size=2**22) as ws:
            async for raw in ws:
                msg = _decode(raw)
                kind = msg.get("type") if isinstance(msg, dict) else None
                if skip_hello and kind == "hello":
                    continue
                if echo:
                    print(f"[record] type={kind} msg={msg}")
                f.write(json.dumps({"ts": _now_ms(), "msg": msg}, ensure_ascii=False) + "\n")
                f.flush()


def main() -> None:
    ap = argparse.ArgumentParser(description="Record relay traffic to a JSONL file.")
    ap.add_argument("--ws", required=True, help="WebSocket URL, e.g. ws://127.0.0.1:8080/ws")
    ap.add_argument("--out", required=True, help="Output JSONL path")
    ap.add_argument("--print", action="store_true", help="Print received messages to stdout")
    ap.add_argument("--keep-hello", action="store_true", help="Also record the greeting frame")
    args = ap.parse_args()

    asyncio.run(record(args.ws, Path(args.out), echo=args.print, skip_hello=not args.keep_hello))


if __name__ == "__main__":
    main()
