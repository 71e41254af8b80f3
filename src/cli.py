import argparse
import sys

import yaml

from src.core import server_pipeline
from src.core.config import CONFIG_PATH, load_config
from src.core.network import check_service

""" src/cli.py: Command-line interface for the static HTTPS server."""

def main(argv=None):
    parser = argparse.ArgumentParser(description="Static HTTPS file server with HTTP -> HTTPS redirect")
    parser.add_argument(
        "--config",
        default=str(CONFIG_PATH),
        help="YAML file with ports, web root and certificate paths (defaults apply if missing)"
    )
    parser.add_argument(
        "--check",
        metavar="HOST",
        help="Probe a running instance on HOST instead of serving"
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="With --check: skip certificate verification"
    )

    args = parser.parse_args(argv)
    try:
        config = load_config(args.config)
    except (ValueError, yaml.YAMLError) as e:
        parser.error(f"invalid config {args.config}: {e}")

    if args.check:
        results = check_service(args.check, config, verify=not args.insecure)
        for name, ok in results.items():
            print(f"[{'OK' if ok else 'FAIL'}] {name}")
        return 0 if all(results.values()) else 1

    return server_pipeline.run(config)

if __name__ == "__main__":
    sys.exit(main())

# Usage: sudo python3 -m src.cli --config env/server.yml
