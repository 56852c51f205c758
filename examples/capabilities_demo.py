#!/usr/bin/env python3
"""
Capabilities Demo -- chuk-mcp-relief

Quick-start script showing what the server can do, without any network
access: server status, capabilities, a viewport tile check and a layer
plan, in both JSON and text output modes.

Usage:
    python examples/capabilities_demo.py
"""

import asyncio

from tool_runner import ToolRunner

BBOX = [7.60, 45.95, 7.70, 46.00]  # Matterhorn, CH/IT


async def main() -> None:
    runner = ToolRunner()

    print("=" * 60)
    print("chuk-mcp-relief -- Server Capabilities")
    print("=" * 60)

    print(f"\nRegistered tools ({len(runner.tool_names)}):")
    for name in sorted(runner.tool_names):
        print(f"  - {name}")

    status = await runner.run("relief_status")
    print("\nServer Status:")
    print(f"  {status['server']} v{status['version']}")
    print(f"  Tiles: {status['tile_url']} (zoom {status['zoom']})")
    print(f"  Storage: {status['storage_provider']}")

    caps = await runner.run("relief_capabilities")
    print("\nDefaults:")
    for key, value in caps["defaults"].items():
        print(f"  {key}: {value}")
    print("Limits:")
    for key, value in caps["limits"].items():
        print(f"  {key}: {value}")

    area = await runner.run("relief_check_area", bbox=BBOX)
    print(f"\nViewport {BBOX}:")
    print(f"  {area['message']}")
    print(f"  Ground size: {area['ground_size_m'][0]:.0f}m x {area['ground_size_m'][1]:.0f}m")

    plan = await runner.run(
        "relief_plan_layers", min_elevation=2200.0, max_elevation=4478.0, interval_m=100.0
    )
    print(f"\nLayer plan: {plan['message']}")
    print(f"  First: {plan['thresholds'][0]:.0f}m  Last: {plan['thresholds'][-1]:.0f}m")

    # ---------------------------------------------------------------
    # Dual output mode: text vs JSON
    # ---------------------------------------------------------------
    print("\n" + "-" * 60)
    print("Text output mode")
    print("-" * 60)

    print(await runner.run_text("relief_capabilities"))
    print()
    print(await runner.run_text("relief_check_area", bbox=BBOX))

    print("\n" + "=" * 60)
    print("Run matterhorn_layers_demo.py to export real layers.")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
