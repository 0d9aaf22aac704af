#!/usr/bin/env python3
"""Unified CLI for the Job Application Tracker.

Usage:
    python cli.py tracker --help
"""
import sys
import argparse


def main():
    parser = argparse.ArgumentParser(
        description='📋 Job Application Tracker',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modules:
  tracker       Applications, resumes & cover letters

Examples:
  python cli.py tracker list
  python cli.py tracker add --company "Acme" --position "Engineer"
  python cli.py tracker status 3f2a9c1e interview
  python cli.py tracker stats
  python cli.py tracker login --user alice
"""
    )

    parser.add_argument(
        'module',
        choices=['tracker'],
        help='Module to run'
    )

    # Parse just the module, pass rest to submodule
    args, remaining = parser.parse_known_args()

    if args.module == 'tracker':
        from modules.tracker.cli import main as tracker_main
        return tracker_main(remaining)


if __name__ == '__main__':
    sys.exit(main())
