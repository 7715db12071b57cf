"""
Reset or seed the persisted application state.

Usage:
  python scripts/seed_state.py            # seed collections that are empty
  python scripts/seed_state.py --reset    # drop everything and reseed
  python scripts/seed_state.py --backend local --state-dir var/state

Seeding is idempotent: stores that already hold data are left alone.
"""

import argparse

from jobhub.config import Settings
from jobhub.hub import Hub


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed or reset JobHub persisted state")
    parser.add_argument("--reset", action="store_true", help="Drop all persisted collections before seeding")
    parser.add_argument("--backend", choices=["local", "database"], help="Override STATE_BACKEND")
    parser.add_argument("--state-dir", help="Override STATE_DIR for the local backend")
    parser.add_argument("--database-url", help="Override DATABASE_URL for the database backend")
    args = parser.parse_args(argv)

    overrides = {}
    if args.backend:
        overrides["state_backend"] = args.backend
    if args.state_dir:
        overrides["state_dir"] = args.state_dir
    if args.database_url:
        overrides["database_url"] = args.database_url
    settings = Settings(**overrides)

    hub = Hub.from_settings(settings)
    if args.reset:
        hub.reset()
        print(f"[RESET] Dropped and reseeded state ({settings.state_backend})")
    else:
        hub.hydrate()
        print(f"[SEED] Hydrated state ({settings.state_backend})")

    print(f"  users:         {len(hub.users.users)}")
    print(f"  jobs:          {len(hub.jobs.jobs)}")
    print(f"  inventory:     {len(hub.inventory.items)}")
    print(f"  reports:       {len(hub.reports.reports)}")
    print(f"  notifications: {len(hub.notifications.notifications)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
