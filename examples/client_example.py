#!/usr/bin/env python3
"""Example TUS client usage with a resumable snapshot file."""

import json
import logging
import os
import sys

from tus_client import ClientOptions, TusClient, TusError, UploadMeta, UploadStats


def progress_callback(stats: UploadStats):
    """Display upload progress."""
    bar_length = 50
    filled = int(bar_length * stats.progress_percent / 100)
    bar = "=" * filled + "-" * (bar_length - filled)
    print(
        f"\rProgress: [{bar}] {stats.progress_percent:.1f}% "
        f"({stats.uploaded_bytes}/{stats.total_bytes} bytes)",
        end="",
    )

    if stats.uploaded_bytes == stats.total_bytes:
        print()


def main():
    """Run the client example."""
    if len(sys.argv) < 3:
        print("Usage: python client_example.py <server_url> <file_path> [headers]")
        print(
            "Example: python client_example.py http://localhost:8080/files /path/to/file.bin "
            '{"Authorization": "Bearer your-token-here"}'
        )
        sys.exit(1)

    logging.basicConfig(level=logging.INFO)

    server_url = sys.argv[1]
    file_path = sys.argv[2]
    headers = json.loads(sys.argv[3]) if len(sys.argv) > 3 else None
    snapshot_path = f"{file_path}.tus.json"

    client = TusClient(ClientOptions(chunk_size=1024 * 1024))

    print(f"Getting server information for {server_url}")
    try:
        server_info = client.get_server_info(server_url)
        print(f"Server TUS Version: {server_info.version}")
        print(f"Supported Extensions: {sorted(server_info.extensions)}")
        if server_info.max_size:
            print(f"Max Upload Size: {server_info.max_size} bytes")
    except TusError as e:
        print(f"Warning: Could not get server info: {e}")

    print("--------------------------------")

    try:
        if os.path.exists(snapshot_path):
            # Continue an interrupted upload from the saved snapshot
            with open(snapshot_path) as f:
                meta = client.get_offset(UploadMeta.from_json(f.read()))
            print(f"Resuming {meta.remote_url} at {meta.bytes_uploaded}/{meta.size} bytes")
        else:
            meta = client.create(file_path, server_url, custom_headers=headers)
            print(f"Upload created: {meta.remote_url}")

        meta = client.resume(meta, progress_callback=progress_callback)
    except TusError as e:
        print(f"\nUpload failed: {e}")
        if e.meta is not None and e.meta.remote_url is not None:
            with open(snapshot_path, "w") as f:
                f.write(e.meta.to_json(indent=2))
            print(f"Saved upload state to {snapshot_path}; run again to resume")
        sys.exit(1)

    if os.path.exists(snapshot_path):
        os.remove(snapshot_path)
    print(f"Upload complete: {meta.remote_url}")


if __name__ == "__main__":
    main()
