#!/usr/bin/env python
"""
Quick Launch Development Server for Trackarr

This script provides a convenient one-command startup for development mode with:
- Automatic reload on Python and YAML changes
- Environment variable configuration for development mode
- Enhanced logging options

Usage:
    python backend/dev.py                          # Start with defaults
    python backend/dev.py --port 8080              # Custom port
    python backend/dev.py --verbose                # Enable debug logging
    python backend/dev.py --sources-file trackers.yml

Environment Variables Set:
    DEBUG=true     - Enables verbose logging (when --verbose flag is used)
"""

import os
import sys
import argparse


def main():
    """Parse arguments and launch uvicorn development server."""
    parser = argparse.ArgumentParser(
        description="Start Trackarr in development mode with auto reload",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python backend/dev.py                               Start dev server on default port 8000
  python backend/dev.py --port 8080                   Start on custom port 8080
  python backend/dev.py --verbose                     Enable debug logging
  python backend/dev.py --sources-file trackers.yml   Load sources from a YAML file
        """
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Server port (default: 8000)"
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Server host (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose debug logging"
    )
    parser.add_argument(
        "--sources-file",
        help="YAML file with a 'trackers' list (sets TRACKER_SOURCES_FILE)"
    )

    args = parser.parse_args()

    # Make the trackarr package importable for the uvicorn reload subprocess
    backend_root = os.path.abspath(os.path.dirname(__file__))
    if backend_root not in sys.path:
        sys.path.insert(0, backend_root)
    os.environ["PYTHONPATH"] = backend_root + os.pathsep + os.environ.get("PYTHONPATH", "")

    os.environ["DEBUG"] = "true" if args.verbose else "false"
    if args.sources_file:
        os.environ["TRACKER_SOURCES_FILE"] = os.path.abspath(args.sources_file)

    print("=" * 60)
    print("Trackarr - Development Mode")
    print("=" * 60)
    print(f"Server: http://{args.host}:{args.port}")
    print(f"Log Level: {'DEBUG' if args.verbose else 'INFO'}")
    print(f"Sources file: {os.environ.get('TRACKER_SOURCES_FILE', '(none)')}")
    print("=" * 60)
    print("\nPress CTRL+C to stop the server\n")

    try:
        import uvicorn
        uvicorn.run(
            "trackarr.main:app",
            host=args.host,
            port=args.port,
            reload=True,
            reload_includes=["*.py", "*.yml", "*.yaml"],
            reload_dirs=[os.path.join(backend_root, "trackarr")],
            log_level="debug" if args.verbose else "info",
        )
    except KeyboardInterrupt:
        print("\n\nShutting down development server...")
        sys.exit(0)
    except Exception as e:
        print(f"\n\nError starting development server: {e}")
        print("\nTroubleshooting:")
        print(f"  1. Check if port {args.port} is already in use")
        print("  2. Verify uvicorn is installed: pip install uvicorn[standard]")
        print("  3. Check TRACKER_SOURCES / TRACKER_SOURCES_FILE values")
        sys.exit(1)


if __name__ == "__main__":
    main()
