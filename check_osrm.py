#!/usr/bin/env python3
"""Manual check that the configured OSRM service answers route and table requests."""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from silonet.config import settings
from silonet.errors import UpstreamUnavailableError
from silonet.services.distance.osrm_client import OSRMClient, check_health

# Two points in Berlin, a region every public OSRM instance covers.
ORIGIN = (52.517037, 13.388860)
DESTINATION = (52.496891, 13.385983)


def main():
    print("=" * 60)
    print("OSRM Connection Check")
    print("=" * 60)
    print()

    print("1. Checking OSRM configuration...")
    if not settings.osrm_base_url:
        print("   [ERROR] OSRM base URL is not configured")
        print("   Set SILONET_OSRM_BASE_URL in your .env file")
        return 1
    print(f"   [OK] OSRM Base URL: {settings.osrm_base_url}")
    print(f"   [OK] OSRM Profile: {settings.osrm_profile}")
    print()

    print("2. Testing OSRM health check...")
    if not check_health():
        print("   [ERROR] OSRM service is not responding; optimizations will use geometric distances")
        return 1
    print("   [OK] OSRM service is healthy and accessible!")
    print()

    client = OSRMClient()
    print("3. Testing OSRM route request...")
    try:
        print(f"   [OK] Route distance: {client.route_distance_km(ORIGIN, DESTINATION):.3f} km")
    except UpstreamUnavailableError as e:
        print(f"   [ERROR] Route request failed: {e}")
        return 1
    print()

    print("4. Testing OSRM table request...")
    try:
        distances = client.table([ORIGIN, DESTINATION], [ORIGIN, DESTINATION])
        print(f"   [OK] Received {len(distances)}x{len(distances[0])} distance matrix")
        print(f"   [OK] Sample distance: {distances[0][1]:.2f} meters")
    except UpstreamUnavailableError as e:
        print(f"   [ERROR] Table request failed: {e}")
        return 1
    print()

    print("=" * 60)
    print("[SUCCESS] OSRM is connected and working!")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
