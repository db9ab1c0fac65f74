#!/usr/bin/env python3
"""
PreviewGuard CLI - Main Entry Point

Usage:
    previewguard register --sandbox-id demo --root-dir ./app --preview-url http://localhost:5173
    previewguard monitor http://localhost:5173 --sandbox-id demo
    previewguard monitor http://localhost:5173 --sandbox-id demo --json > result.json
    previewguard fix --sandbox-id demo --errors result.json > fix.txt
    previewguard apply --sandbox-id demo --input fix.txt
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

import httpx
from rich.console import Console

from cli.client import APIError, PreviewGuardClient
from cli.config import CLIConfig
from cli.renderer import ResultRenderer


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog="previewguard",
        description="PreviewGuard - runtime error monitoring and AI auto-fix for app previews",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  previewguard monitor http://localhost:5173 --sandbox-id demo
  previewguard fix --sandbox-id demo --errors result.json
  previewguard apply --sandbox-id demo --input fix.txt
        """
    )

    parser.add_argument(
        "--server-url",
        type=str,
        default=None,
        help="API base URL (default: $PREVIEWGUARD_API_URL or http://localhost:8000/api/v1)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # monitor
    monitor_parser = subparsers.add_parser("monitor", help="Load a preview and report runtime errors")
    monitor_parser.add_argument("url", help="Preview URL to load")
    monitor_parser.add_argument("--sandbox-id", required=True, help="Sandbox identifier")
    monitor_parser.add_argument("--timeout", type=int, help="Navigation timeout in ms")
    monitor_parser.add_argument(
        "--error-types",
        type=str,
        help="Comma-separated allow-list (e.g. console-error,exception)"
    )
    monitor_parser.add_argument("--screenshot", action="store_true", help="Capture a screenshot when errors are found")
    monitor_parser.add_argument("--json", action="store_true", help="Print the raw JSON result")

    # fix
    fix_parser = subparsers.add_parser("fix", help="Stream AI fixes for runtime errors")
    fix_parser.add_argument("--sandbox-id", required=True, help="Sandbox identifier")
    fix_parser.add_argument(
        "--errors",
        required=True,
        help="JSON file with a monitor result or an error list ('-' for stdin)"
    )
    fix_parser.add_argument("--focus", nargs="*", default=None, help="Extra files to include")

    # apply
    apply_parser = subparsers.add_parser("apply", help="Write a fix response into the sandbox")
    apply_parser.add_argument("--sandbox-id", required=True, help="Sandbox identifier")
    apply_parser.add_argument("--input", required=True, help="File with fix output ('-' for stdin)")

    # register
    register_parser = subparsers.add_parser("register", help="Register a local directory as a sandbox")
    register_parser.add_argument("--sandbox-id", required=True, help="Sandbox identifier")
    register_parser.add_argument("--root-dir", required=True, help="Project directory")
    register_parser.add_argument("--preview-url", help="URL the preview is served on")

    return parser


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def load_errors(path: str) -> List[Dict[str, Any]]:
    """Accept either a full monitor result or a bare list of errors"""
    data = json.loads(_read_input(path))
    if isinstance(data, dict):
        data = data.get("errors", [])
    if not isinstance(data, list):
        raise ValueError("Errors file must contain a list or a monitor result")
    return data


async def run_monitor(client: PreviewGuardClient, args, console: Console) -> int:
    error_types = [t.strip() for t in args.error_types.split(",")] if args.error_types else None
    result = await client.monitor(
        args.url,
        args.sandbox_id,
        timeout_ms=args.timeout,
        error_types=error_types,
        capture_screenshots=args.screenshot,
    )

    if args.json:
        print(json.dumps(result, indent=2))
    else:
        ResultRenderer(console).render_monitor_result(result)

    if not result.get("success", False):
        return 2
    return 1 if result.get("hasErrors") else 0


async def run_fix(client: PreviewGuardClient, args, console: Console) -> int:
    errors = load_errors(args.errors)
    if not errors:
        console.print("[#FBBF24]No errors to fix[/#FBBF24]")
        return 0

    async for chunk in client.fix(args.sandbox_id, errors, args.focus):
        sys.stdout.write(chunk)
        sys.stdout.flush()
    sys.stdout.write("\n")
    return 0


async def run_apply(client: PreviewGuardClient, args, console: Console) -> int:
    result = await client.apply(args.sandbox_id, _read_input(args.input))
    ResultRenderer(console).render_apply_result(result)
    return 0 if result.get("success") else 1


async def run_register(client: PreviewGuardClient, args, console: Console) -> int:
    result = await client.register_sandbox(args.sandbox_id, args.root_dir, args.preview_url)
    console.print(f"[#4ADE80]✓ Registered sandbox[/#4ADE80] {result.get('sandboxId', args.sandbox_id)}")
    return 0


COMMANDS = {
    "monitor": run_monitor,
    "fix": run_fix,
    "apply": run_apply,
    "register": run_register,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    config = CLIConfig.load_default()
    if args.server_url:
        config.api_base_url = args.server_url
    config.verbose = config.verbose or args.verbose

    console = Console()
    client = PreviewGuardClient(config)

    try:
        return asyncio.run(COMMANDS[args.command](client, args, console))
    except KeyboardInterrupt:
        return 130
    except APIError as e:
        console.print(f"[#EF4444]✗ {e}[/#EF4444]")
        return 1
    except httpx.HTTPError as e:
        console.print(f"[#EF4444]✗ Cannot reach {config.api_base_url}: {e}[/#EF4444]")
        return 1
    except (OSError, ValueError) as e:
        console.print(f"[#EF4444]✗ Error: {e}[/#EF4444]")
        return 1
    except Exception as e:
        if config.verbose:
            console.print_exception()
        else:
            console.print(f"[#EF4444]✗ Error: {e}[/#EF4444]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
