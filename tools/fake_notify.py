"""
Fake MJ proxy callback: posts task notifications to a running mjbot.

Simulates the MJ proxy's notifyHook so the relay can be tested without a
real Midjourney account.

Usage:
    uv run python tools/fake_notify.py --state "TestGroup:Alice" [options]

Options:
    --url URL           Notify endpoint (default: read from config.toml)
    --config PATH       Path to config.toml (default: config.toml)
    --state STATE       Correlation key: "<group>:<sender>" or "<friend>"
    --action ACTION     IMAGINE / UPSCALE / VARIATION / DESCRIBE (default: IMAGINE)
    --status STATUS     SUBMITTED / FAILURE / SUCCESS (default: SUCCESS)
    --image-url URL     Result image URL
    --fail-reason TEXT  Failure reason for --status FAILURE
"""

import argparse
import sys
import time
import tomllib
from pathlib import Path

import httpx


def print_colored(text: str, color: str) -> None:
    """Print text with ANSI color codes."""
    colors = {
        "green": "\033[92m",
        "red": "\033[91m",
        "gray": "\033[90m",
        "reset": "\033[0m",
    }
    print(f"{colors.get(color, '')}{text}{colors['reset']}")


def build_event(args: argparse.Namespace) -> dict:
    """Build a task notification as the MJ proxy sends it."""
    now = int(time.time() * 1000)
    return {
        "id": args.task_id,
        "action": args.action,
        "status": args.status,
        "state": args.state,
        "description": f"/imagine {args.prompt}",
        "prompt": args.prompt,
        "promptEn": args.prompt,
        "failReason": args.fail_reason,
        "submitTime": now - args.elapsed * 1000,
        "finishTime": now,
        "imageUrl": args.image_url,
        "progress": "100%",
    }


def resolve_url(args: argparse.Namespace) -> str:
    """Determine the notify URL.

    Priority: --url flag > config.toml [webhook] > default.
    """
    if args.url:
        return args.url

    config_path = Path(args.config)
    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                raw = tomllib.load(f)
            host = raw.get("webhook", {}).get("host", "127.0.0.1")
            port = raw.get("webhook", {}).get("port", 80)
            # "0.0.0.0" means all interfaces, connect to localhost
            if host == "0.0.0.0":
                host = "127.0.0.1"
            return f"http://{host}:{port}/notify"
        except (OSError, tomllib.TOMLDecodeError) as e:
            print_colored(f"Failed to read {config_path}: {e}, using default", "red")

    return "http://127.0.0.1:80/notify"


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Post a fake MJ task notification to mjbot.",
        epilog="If --url is not given, the webhook address is read from config.toml.",
    )
    parser.add_argument("--url", help="Notify URL (e.g. http://127.0.0.1:8081/notify)")
    parser.add_argument("--config", default="config.toml", help="Path to config.toml")
    parser.add_argument("--state", required=True, help='"<group>:<sender>" or "<friend>"')
    parser.add_argument("--action", default="IMAGINE")
    parser.add_argument("--status", default="SUCCESS")
    parser.add_argument("--task-id", default="1320098173412546")
    parser.add_argument("--prompt", default="a cat in the rain --ar 16:9")
    parser.add_argument("--fail-reason", default="")
    parser.add_argument("--elapsed", type=int, default=42, help="Task duration in seconds")
    parser.add_argument(
        "--image-url",
        default="https://cdn.discordapp.com/attachments/1/2/cat.png",
    )
    args = parser.parse_args()

    url = resolve_url(args)
    event = build_event(args)
    print_colored(f"POST {url} ({args.action}/{args.status}, state={args.state})", "gray")

    try:
        resp = httpx.post(url, json=event, timeout=30.0)
    except httpx.HTTPError as e:
        print_colored(f"Request failed: {e}", "red")
        sys.exit(1)

    color = "green" if resp.status_code == 200 else "red"
    print_colored(f"{resp.status_code} {resp.text}", color)


if __name__ == "__main__":
    main()
