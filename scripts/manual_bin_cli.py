#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import select
import sys
import termios
import time
import tty
from dataclasses import dataclass
from typing import Any
from urllib import error, request


@dataclass(frozen=True, slots=True)
class KeyAction:
    key: str
    label: str
    bin_id: int | None = None


KEYMAP: list[KeyAction] = [
    KeyAction("1", "Empty bin 1", 1),
    KeyAction("2", "Empty bin 2", 2),
    KeyAction("3", "Empty bin 3", 3),
    KeyAction("4", "Empty bin 4", 4),
    KeyAction("a", "Empty all bins"),
    KeyAction("l", "Show alerts"),
    KeyAction("y", "Show last 24h history"),
    KeyAction("s", "Show latest bin status"),
    KeyAction("h", "Show help"),
    KeyAction("x", "Exit"),
]


class RawKeyboard:
    def __init__(self) -> None:
        self._fd = sys.stdin.fileno()
        self._old_settings: list[Any] | None = None

    def __enter__(self) -> "RawKeyboard":
        self._old_settings = termios.tcgetattr(self._fd)
        tty.setraw(self._fd)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._old_settings is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._old_settings)


def _http_json(method: str, url: str, payload: dict[str, Any] | None, timeout: float) -> Any:
    data = None
    headers = {"Content-Type": "application/json"}
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
    req = request.Request(url=url, method=method, data=data, headers=headers)
    with request.urlopen(req, timeout=timeout) as resp:
        body = resp.read().decode("utf-8")
        return json.loads(body) if body else None


def send_empty(api_base: str, bin_id: int | None, timeout: float) -> tuple[bool, str]:
    url = f"{api_base}/api/bins/empty-all" if bin_id is None else f"{api_base}/api/bins/{bin_id}/empty"
    try:
        payload = _http_json("POST", url, {"action": "Emptied"}, timeout)
        if not isinstance(payload, dict) or not payload.get("ok"):
            return False, f"Empty request failed: {payload}"
        return True, str(payload.get("message", ""))
    except error.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="ignore")
        return False, f"HTTP {exc.code}: {detail or exc.reason}"
    except Exception as exc:
        return False, f"Request error: {exc}"


def get_json_list(api_base: str, path: str, timeout: float) -> tuple[bool, list[dict[str, Any]] | str]:
    url = f"{api_base}{path}"
    try:
        payload = _http_json("GET", url, None, timeout)
        if isinstance(payload, dict) and "items" in payload:
            payload = payload["items"]
        if not isinstance(payload, list):
            return False, f"Unexpected {path} payload: {payload}"
        return True, payload
    except Exception as exc:
        return False, f"Failed to fetch {path}: {exc}"


def print_help() -> None:
    print("\nManual Bin Control Keys")
    for action in KEYMAP:
        print(f"  {action.key}: {action.label}")
    print("")


def print_status(api_base: str, timeout: float) -> None:
    ok, result = get_json_list(api_base, "/api/bins", timeout)
    if not ok:
        print(f"[status] {result}")
        return
    print("\nLatest Bin Status")
    for row in result:  # type: ignore[union-attr]
        print(
            f"  [{row.get('bin_id')}] {row.get('name')} | {row.get('status')} | "
            f"fill={row.get('fill_level')}% | volume={row.get('volume_liters')}L | "
            f"last_emptied={row.get('last_emptied_at') or 'never'}"
        )
    print("")


def print_alerts(api_base: str, timeout: float) -> None:
    ok, result = get_json_list(api_base, "/api/alerts", timeout)
    if not ok:
        print(f"[alerts] {result}")
        return
    print("\nActive Alerts")
    if not result:
        print("  none")
    for row in result:  # type: ignore[union-attr]
        print(f"  [{row.get('level')}] {row.get('message')}")
    print("")


def print_history(api_base: str, timeout: float) -> None:
    ok, result = get_json_list(api_base, "/api/history?window=24h", timeout)
    if not ok:
        print(f"[history] {result}")
        return
    print("\nHistory (24h)")
    for row in result:  # type: ignore[union-attr]
        print(
            f"  {row.get('timestamp')} | {row.get('bin_name')} | {row.get('action')} | "
            f"{row.get('fill_level_at_event')}% ({row.get('volume_at_event')}L)"
        )
    print("")


def key_to_action(ch: str) -> KeyAction | None:
    for action in KEYMAP:
        if action.key == ch:
            return action
    return None


def run(args: argparse.Namespace) -> int:
    if not sys.stdin.isatty():
        print("This CLI needs an interactive TTY.", file=sys.stderr)
        return 1

    print(f"Manual bin control connected to {args.api_base}")
    print("Press `h` for help, `x` to exit.")
    print_help()
    print_status(args.api_base, args.timeout)

    next_status = time.monotonic() + args.status_interval
    with RawKeyboard():
        while True:
            readable, _, _ = select.select([sys.stdin], [], [], 0.1)
            if readable:
                ch = sys.stdin.read(1).lower()
                action = key_to_action(ch)
                if action is None:
                    continue

                if action.key == "x":
                    print("\nExiting manual control.")
                    return 0
                if action.key == "h":
                    print_help()
                    continue
                if action.key == "l":
                    print_alerts(args.api_base, args.timeout)
                    continue
                if action.key == "y":
                    print_history(args.api_base, args.timeout)
                    continue
                if action.key == "s":
                    print_status(args.api_base, args.timeout)
                    next_status = time.monotonic() + args.status_interval
                    continue

                ok, msg = send_empty(args.api_base, action.bin_id, args.timeout)
                prefix = "[ok]" if ok else "[error]"
                print(f"\n{prefix} {msg}")

            now = time.monotonic()
            if args.status_interval > 0 and now >= next_status:
                print_status(args.api_base, args.timeout)
                next_status = now + args.status_interval


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive keyboard CLI for emptying bins and checking status.")
    parser.add_argument("--api-base", default="http://localhost:8000", help="Backend API base URL")
    parser.add_argument("--timeout", type=float, default=2.0, help="HTTP timeout seconds")
    parser.add_argument(
        "--status-interval",
        type=float,
        default=5.0,
        help="Seconds between automatic status snapshots (0 disables auto snapshots)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    raise SystemExit(run(args))


if __name__ == "__main__":
    main()
