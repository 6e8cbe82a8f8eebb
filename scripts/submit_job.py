#!/usr/bin/env python3
"""
Submit a photo to a running booth service and wait for the result.

The submit call blocks until the prediction finishes; a second task polls
/status meanwhile, the way the booth kiosk does.

Usage:
    python scripts/submit_job.py photo.jpg "make it sunset" --id kiosk-1
"""

import argparse
import asyncio
import base64
import contextlib
import json
import sys
import uuid
from pathlib import Path

import httpx


async def watch_status(client: httpx.AsyncClient, job_id: str, interval: float):
    while True:
        await asyncio.sleep(interval)
        response = await client.get("/api/v1/status", params={"id": job_id})
        data = response.json()
        print(f"• status [{job_id}]: {json.dumps(data)}")
        if data.get("received"):
            return data


async def run(args) -> int:
    image_path = Path(args.image)
    if not image_path.exists():
        print(f"File not found: {image_path}")
        return 1

    photo = base64.b64encode(image_path.read_bytes()).decode("utf-8")
    job_id = args.id or uuid.uuid4().hex[:8]
    payload = {"id": job_id, "prompt": args.prompt, "photo": photo}

    async with httpx.AsyncClient(base_url=args.url, timeout=args.timeout) as client:
        watcher = asyncio.create_task(watch_status(client, job_id, args.interval))
        try:
            response = await client.post("/api/v1/jobs", json=payload)
        finally:
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher

    print(f"HTTP {response.status_code}: {json.dumps(response.json(), indent=2)}")
    return 0 if response.status_code == 200 else 1


def main():
    parser = argparse.ArgumentParser(description="Submit a booth job and wait for the result")
    parser.add_argument("image", help="Path to the source photo")
    parser.add_argument("prompt", help="Edit instruction")
    parser.add_argument("--id", default=None, help="Job identifier (random if omitted)")
    parser.add_argument("--url", default="http://localhost:10000", help="Service base URL")
    parser.add_argument("--interval", type=float, default=5.0, help="Status poll interval in seconds")
    parser.add_argument("--timeout", type=float, default=240.0, help="Submit request timeout in seconds")
    sys.exit(asyncio.run(run(parser.parse_args())))


if __name__ == "__main__":
    main()
