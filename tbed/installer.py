"""Native messaging host manifest installer.

Writes the Mozilla-style manifest that lets Thunderbird (and
Firefox) find the ``tbed-host`` executable, into each per-user
native messaging directory for the current platform.
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click

from tbed import io_ops

HOST_NAME = "tbed"
HOST_EXECUTABLE = "tbed-host"

MANIFEST_DIRS: dict[str, list[str]] = {
    "linux": [
        "~/.mozilla/native-messaging-hosts",
        "~/.thunderbird/native-messaging-hosts",
    ],
    "darwin": [
        "~/Library/Application Support/Mozilla/NativeMessagingHosts",
        "~/Library/Application Support/Thunderbird/NativeMessagingHosts",
    ],
}


def manifest_dirs(platform: str | None = None) -> list[str]:
    """Return the manifest directories for a platform, expanded.

    Empty for platforms without file-based registration (Windows
    uses the registry).
    """
    key = platform or sys.platform
    return [
        str(Path(d).expanduser()) for d in MANIFEST_DIRS.get(key, [])
    ]


def build_manifest(host_path: str, extension_id: str) -> dict[str, Any]:
    """Build the native messaging host manifest dict."""
    return {
        "name": HOST_NAME,
        "description": "tbed external editor bridge for Thunderbird",
        "path": host_path,
        "type": "stdio",
        "allowed_extensions": [extension_id],
    }


def install_manifest(
    manifest_dir: str,
    manifest: dict[str, Any],
) -> dict[str, Any]:
    """Write the manifest into one directory.

    Returns a result dict with the directory, success status and
    optional error.
    """
    try:
        io_ops.makedirs(manifest_dir)
        io_ops.write_file(
            str(Path(manifest_dir) / f"{HOST_NAME}.json"),
            json.dumps(manifest, indent=2) + "\n",
        )
    except OSError as e:
        return {
            "directory": manifest_dir,
            "success": False,
            "error": str(e),
        }
    return {
        "directory": manifest_dir,
        "success": True,
    }


def install_manifests(
    host_path: str,
    extension_id: str,
    platform: str | None = None,
) -> list[dict[str, Any]]:
    """Install the manifest into every directory for the platform."""
    manifest = build_manifest(host_path, extension_id)
    return [
        install_manifest(d, manifest) for d in manifest_dirs(platform)
    ]


def format_summary(results: list[dict[str, Any]]) -> str:
    """Format installation results as a human-readable summary."""
    if not results:
        return (
            "No manifest directories for this platform. "
            "No manifests were installed."
        )
    lines = ["Installation summary:"]
    for result in results:
        directory = result["directory"]
        if result["success"]:
            lines.append(f"  {directory}: OK")
        else:
            error = result.get("error", "unknown error")
            lines.append(f"  {directory}: FAIL ({error})")
    return "\n".join(lines)


@click.command()
@click.option(
    "--extension-id",
    required=True,
    help="ID of the mail extension allowed to start the host.",
)
@click.option(
    "--host-path",
    default=None,
    help="Absolute path of the host executable (default: tbed-host on PATH).",
)
def cli(extension_id: str, host_path: str | None) -> None:
    """Register the tbed native messaging host for the current user."""
    path = host_path or io_ops.find_executable(HOST_EXECUTABLE)
    if path is None:
        io_ops.print_output(
            f"Could not find {HOST_EXECUTABLE} on PATH; pass --host-path.",
        )
        sys.exit(1)

    results = install_manifests(str(Path(path).resolve()), extension_id)
    io_ops.print_output(format_summary(results))
    if not results or not all(r["success"] for r in results):
        sys.exit(1)


if __name__ == "__main__":
    cli()
