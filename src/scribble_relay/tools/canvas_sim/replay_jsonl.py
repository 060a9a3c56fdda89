from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

import websockets


def load_events(jsonl_path: Path) -> list[tuple[int | None, object]]:
    """
    Read previously-recorded JSONL.

    Accepted line formats:
      - record_jsonl.py output: {"ts": <ms>, "msg": {...}}
      - raw messages per line: {...}
    """
    events: list[tuple[int | None, object]] = []
    for line in jsonl_path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        obj = json.loads(line)
        if isinstance(obj, dict) and "msg" in obj:
            ts = obj.get("ts")
            events.append((int(ts) if isinstance(ts, (int, float)) else None, obj["msg"]))
        elif isinstance(obj, dict):
            events.append((None, obj))
    return events


def _frame(msg: object) -> str:
    if isinstance(msg, str):
        return msg
    return json.dumps(msg, ensure_ascii=False, separators=(",", ":"))


def schedule(
    events: list[tuple[int | None, object]],
    *,
    speed: float = 1.0,
    default_dt_ms: int = 0,
    only_type: str | None = None,
) -> list[tuple[float, str]]:
    """
    Turn recorded events into (delay_s, frame) pairs.

    Delays are the gap to the previous *kept* frame, scaled by `speed`;
    frames without a timestamp (or the first frame) wait `default_dt_ms`.
    """
    out: list[tuple[float, str]] = []
    last_ts: int | None = None
    for ts, msg in events:
        if only_type is not None and not (isinstance(msg, dict) and msg.get("type") == only_type):
            continue
        gap_ms = default_dt_ms if ts is None or last_ts is None else max(0, ts - last_ts)
        if ts is not None:
            last_ts = ts
        out.append((gap_ms / 1000.0 / max(0.01, speed), _frame(msg)))
    return out


async def replay(
    ws_url: str,
    jsonl_path: Path,
    *,
    speed: float = 1.0,
    default_dt_ms: int = 0,
    only_type: str | None = None,
) -> int:
    """Send recorded frames into the relay, keeping their relative timing. Returns frames sent."""
    plan = schedule(
        load_events(jsonl_path), speed=speed, default_dt_ms=default_dt_ms, only_type=only_type
    )
    async with websockets.connect(ws_url, max_size=2**22) as ws:
        for delay_s, frame in plan:
            if delay_s:
                await asyncio.sleep(delay_s)
            await ws.send(frame)
    return len(plan)


def main() -> None:
    ap = argparse.ArgumentParser(description="Replay recorded canvas JSONL into the relay websocket.")
    ap.add_argument("--ws", required=True, help="WebSocket URL, e.g. ws://127.0.0.1:8080/ws")
    ap.add_argument("--in", dest="inp", required=True, help="Input JSONL path")
    ap.add_argument("--speed", type=float, default=1.0, help="Speed multiplier (2.0 = 2x faster)")
    ap.add_argument("--default-dt-ms", type=int, default=0, help="Delay between messages if no timestamps")
    ap.add_argument(
        "--only-type",
        default=None,
        help="If set, only replay messages with this 'type' (e.g. 'draw').",
    )
    args = ap.parse_args()

    sent = asyncio.run(
        replay(
            args.ws,
            Path(args.inp),
            speed=args.speed,
            default_dt_ms=args.default_dt_ms,
            only_type=args.only_type,
        )
    )
    print(f"[replay] sent {sent} frame(s)")


if __name__ == "__main__":
    main()
