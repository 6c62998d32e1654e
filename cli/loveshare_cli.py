#!/usr/bin/env python3
"""
LoveShare CLI: create and read shares on a LoveShare server from a terminal.

Local images are uploaded through the server's relay first, so a share can
mix already-public URLs and files from disk.

Usage:
    python loveshare_cli.py --server URL create --user Ann --text "hi" --image a.jpg
    python loveshare_cli.py --server URL get <share-id>
    python loveshare_cli.py --server URL upload photo.png
"""

from __future__ import annotations

import argparse
import base64
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import httpx


class LoveShareError(Exception):
    """The server answered with an error body."""


# ---------------------------------------------------------------------------
# LoveShare API client
# ---------------------------------------------------------------------------

class LoveShareClient:
    def __init__(self, server: str, transport: Optional[httpx.BaseTransport] = None):
        self.client = httpx.Client(
            base_url=server.rstrip("/"),
            timeout=60.0,
            transport=transport,
        )

    def _check(self, resp: httpx.Response) -> dict:
        if resp.is_error:
            try:
                body = resp.json()
            except ValueError:
                body = None
            message = body.get("error") if isinstance(body, dict) else None
            raise LoveShareError(message or f"HTTP {resp.status_code}")
        return resp.json()

    def upload_image(self, file_path: Path) -> str:
        """Upload a local image via the relay and return its public URL."""
        encoded = base64.b64encode(file_path.read_bytes()).decode("ascii")
        resp = self.client.post(
            "/api/upload",
            json={"imageBase64": encoded, "fileName": file_path.name},
            timeout=120.0,
        )
        return self._check(resp)["url"]

    def create_share(
        self,
        user_name: str,
        love_text: str,
        photos: list[str],
        ttl_ms: Optional[int] = None,
    ) -> dict:
        body = {"userName": user_name, "loveText": love_text, "photos": photos}
        if ttl_ms is not None:
            body["ttlMs"] = ttl_ms
        return self._check(self.client.post("/api/share", json=body))

    def get_share(self, share_id: str) -> dict:
        return self._check(self.client.get(f"/api/share/{share_id}"))

    def close(self) -> None:
        self.client.close()


def format_expiry(expires_at_ms: float) -> str:
    return datetime.fromtimestamp(expires_at_ms / 1000, tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M:%S UTC"
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_create(client: LoveShareClient, args: argparse.Namespace) -> int:
    photos = list(args.photo or [])
    for image in args.image or []:
        path = Path(image)
        if not path.is_file():
            print(f"ERROR: {image} is not a file", file=sys.stderr)
            return 1
        url = client.upload_image(path)
        print(f"Uploaded {path.name} -> {url}")
        photos.append(url)

    if not photos:
        print("ERROR: give at least one --photo or --image", file=sys.stderr)
        return 1

    result = client.create_share(args.user, args.text, photos, args.ttl_ms)
    print(f"Share id: {result['id']}")
    print(f"Expires:  {format_expiry(result['expiresAt'])}")
    return 0


def cmd_get(client: LoveShareClient, args: argparse.Namespace) -> int:
    share = client.get_share(args.share_id)
    print(json.dumps(share, indent=2, ensure_ascii=False))
    return 0


def cmd_upload(client: LoveShareClient, args: argparse.Namespace) -> int:
    path = Path(args.file)
    if not path.is_file():
        print(f"ERROR: {args.file} is not a file", file=sys.stderr)
        return 1
    print(client.upload_image(path))
    return 0


COMMANDS = {
    "create": cmd_create,
    "get": cmd_get,
    "upload": cmd_upload,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="LoveShare CLI -- create and read photo shares."
    )
    parser.add_argument(
        "--server",
        type=str,
        default="http://localhost:3000",
        help="LoveShare server URL.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Create a share.")
    create.add_argument("--user", default="", help="Name shown on the share.")
    create.add_argument("--text", default="", help="Message shown on the share.")
    create.add_argument(
        "--photo", action="append", help="Public image URL (repeatable)."
    )
    create.add_argument(
        "--image", action="append", help="Local image to upload first (repeatable)."
    )
    create.add_argument(
        "--ttl-ms", type=int, default=None, help="Lifetime in milliseconds."
    )

    get = sub.add_parser("get", help="Print a share as JSON.")
    get.add_argument("share_id", help="Share id returned by create.")

    upload = sub.add_parser("upload", help="Upload an image and print its URL.")
    upload.add_argument("file", help="Image file to upload.")

    return parser


def main(argv: Optional[list[str]] = None, transport: Optional[httpx.BaseTransport] = None) -> int:
    args = build_parser().parse_args(argv)
    client = LoveShareClient(args.server, transport=transport)
    try:
        return COMMANDS[args.command](client, args)
    except LoveShareError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except httpx.HTTPError as exc:
        print(f"ERROR: could not reach {args.server}: {exc}", file=sys.stderr)
        return 1
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
