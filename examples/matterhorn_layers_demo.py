#!/usr/bin/env python3
"""
Matterhorn Layered Relief -- chuk-mcp-relief Demo

Runs the full export pipeline for the Matterhorn:
    relief_check_area -> relief_export_layers

The archive is retrieved from the artifact store and unpacked into
examples/output/matterhorn/, one SVG per elevation layer plus README.txt.

Usage:
    python examples/matterhorn_layers_demo.py

Requirements:
    Network access to the Terrarium elevation tiles (RELIEF_TILE_URL)
"""

import asyncio
import io
import sys
import zipfile
from pathlib import Path

from tool_runner import ToolRunner

# -- Configuration -----------------------------------------------------------

BBOX = [7.60, 45.95, 7.70, 46.00]
INTERVAL_M = 100.0
OUTPUT_DIR = Path(__file__).parent / "output" / "matterhorn"


async def main() -> None:
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    runner = ToolRunner()

    print("=" * 60)
    print("Matterhorn -- Layered Relief Export")
    print("=" * 60)

    print("\nStep 1: Checking tile budget...")
    area = await runner.run("relief_check_area", bbox=BBOX)
    print(f"  {area['message']}")
    if not area["within_limit"]:
        sys.exit(1)

    print("\nStep 2: Exporting layers...")
    result = await runner.run(
        "relief_export_layers", bbox=BBOX, interval_m=INTERVAL_M, width=16.0, height=8.0
    )
    if "error" in result:
        print(f"  ERROR [{result.get('code')}]: {result['error']}")
        sys.exit(1)
    print(f"  {result['message']}")
    print(f"  Artifact: {result['artifact_ref']} ({result['size_bytes']} bytes)")
    for layer in result["layers"]:
        print(f"    {layer['filename']}: {layer['rings']} rings, {layer['points']} points")

    print("\nStep 3: Unpacking archive...")
    store = runner.manager._get_store()
    data = await store.retrieve(result["artifact_ref"])
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        zf.extractall(OUTPUT_DIR)
    print(f"  Wrote {len(result['files'])} files to {OUTPUT_DIR}")


if __name__ == "__main__":
    asyncio.run(main())
