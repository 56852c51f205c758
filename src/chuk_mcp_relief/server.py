#!/usr/bin/env python3
"""
Relief MCP Server - Entry Point

Serves the layered relief export tools over stdio (desktop MCP clients) or
HTTP. Finished archives go to the chuk-artifacts store configured from the
environment; elevation tiles come from RELIEF_TILE_URL.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .constants import DEFAULT_TILE_URL, EnvVar, ServerConfig, SessionProvider, StorageProvider

# Load environment variables from .env file
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

logger = logging.getLogger(__name__)

DEFAULT_HTTP_PORT = 8004


def _resolve_provider() -> tuple[str, str | None] | None:
    """
    Pick the storage provider and its bucket/path from the environment.

    Returns:
        (provider, bucket) or None when the configured provider is unusable
    """
    provider = os.environ.get(EnvVar.ARTIFACTS_PROVIDER, StorageProvider.MEMORY)

    if provider == StorageProvider.S3:
        bucket = os.environ.get(EnvVar.BUCKET_NAME)
        aws_key = os.environ.get(EnvVar.AWS_ACCESS_KEY_ID)
        aws_secret = os.environ.get(EnvVar.AWS_SECRET_ACCESS_KEY)
        if not all([bucket, aws_key, aws_secret]):
            logger.warning(
                "S3 provider configured but missing credentials. "
                f"Set {EnvVar.AWS_ACCESS_KEY_ID}, {EnvVar.AWS_SECRET_ACCESS_KEY}, "
                f"and {EnvVar.BUCKET_NAME}."
            )
            return None
        logger.info(f"Using S3 artifact storage (bucket: {bucket})")
        logger.info(f"  Endpoint: {os.environ.get(EnvVar.AWS_ENDPOINT_URL_S3)}")
        return provider, bucket

    if provider == StorageProvider.FILESYSTEM:
        artifacts_path = os.environ.get(EnvVar.ARTIFACTS_PATH)
        if not artifacts_path:
            logger.warning(
                f"Filesystem provider configured but {EnvVar.ARTIFACTS_PATH} not set. "
                "Defaulting to memory provider."
            )
            return StorageProvider.MEMORY, None
        Path(artifacts_path).mkdir(parents=True, exist_ok=True)
        logger.info(f"Using filesystem artifact storage (path: {artifacts_path})")
        return provider, artifacts_path

    return provider, None


def _init_artifact_store() -> bool:
    """
    Initialize the artifact store that receives export archives.

    Returns:
        True if artifact store was initialized, False otherwise
    """
    resolved = _resolve_provider()
    if resolved is None:
        return False
    provider, bucket = resolved
    redis_url = os.environ.get(EnvVar.REDIS_URL)

    try:
        from chuk_artifacts import ArtifactStore
        from chuk_mcp_server import set_global_artifact_store

        store_kwargs: dict[str, Any] = {
            "storage_provider": provider,
            "session_provider": SessionProvider.REDIS if redis_url else SessionProvider.MEMORY,
        }
        if bucket:
            store_kwargs["bucket"] = bucket

        set_global_artifact_store(ArtifactStore(**store_kwargs))
        logger.info(
            f"Artifact store initialized (provider: {provider}, "
            f"sessions: {store_kwargs['session_provider']})"
        )
        return True

    except Exception as e:
        logger.error(f"Failed to initialize artifact store: {e}")
        return False


def _log_tile_config() -> None:
    url = os.environ.get(EnvVar.TILE_URL) or DEFAULT_TILE_URL
    logger.info(f"Elevation tiles: {url}")


# Import mcp instance and all registered tools from async server
from .async_server import mcp  # noqa: F401, E402


def main() -> None:
    """Main entry point for the MCP server."""
    import argparse

    # Initialize artifact store at startup, not at import time
    _init_artifact_store()
    _log_tile_config()

    parser = argparse.ArgumentParser(description=ServerConfig.DESCRIPTION)
    parser.add_argument(
        "mode",
        nargs="?",
        choices=["stdio", "http"],
        default=None,
        help="Transport mode (stdio for desktop MCP clients, http for API)",
    )
    parser.add_argument(
        "--host", default="localhost", help="Host for HTTP mode (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_HTTP_PORT,
        help=f"Port for HTTP mode (default: {DEFAULT_HTTP_PORT})",
    )

    args = parser.parse_args()

    mode = args.mode
    if mode is None:
        auto_stdio = os.environ.get(EnvVar.MCP_STDIO) or (not sys.stdin.isatty())
        mode = "stdio" if auto_stdio else "http"

    if mode == "stdio":
        print("Relief MCP Server starting in STDIO mode", file=sys.stderr)
        mcp.run(stdio=True)
    else:
        print(
            f"Relief MCP Server starting in HTTP mode on {args.host}:{args.port}",
            file=sys.stderr,
        )
        mcp.run(host=args.host, port=args.port, stdio=False)


if __name__ == "__main__":
    main()
