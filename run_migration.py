"""
Run a NiFi dataflow migration from the command line.

Examples:
    python run_migration.py
    python run_migration.py --workspace-id 493
    python run_migration.py --workspace-id my-workspace --dataflow-id 0f1e...
"""

import argparse
import logging
import sys

from services.migration_service import MigrationService


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Migrate live legacy dataflows to canvas dataflows on the new system',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--workspace-id', help='Workspace id or name to migrate (default: all enabled)')
    parser.add_argument('--dataflow-id', help='Dataflow UUID to migrate (default: all live)')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s - %(message)s'
    )

    run = MigrationService().run(args.workspace_id, args.dataflow_id)

    print(f"Run:     {run.run_id} ({run.status})")
    print(f"Log:     {run.log_path}")
    print(f"Summary: {run.summary_path or '-'}")
    if run.error:
        print(f"Error:   {run.error}")
    return 1 if run.has_failures else 0


if __name__ == '__main__':
    sys.exit(main())
