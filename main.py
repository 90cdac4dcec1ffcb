"""
Metabase Reporter Entry Point

Run with: python main.py --url https://metabase.example.com/public/dashboard/...
Or serve: python main.py --serve --port 8081
"""

import sys

from metabase_reporter.cli import main

if __name__ == "__main__":
    sys.exit(main())
