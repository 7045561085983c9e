#!/usr/bin/env python3
"""Roll-up tree CLI - drive a running backend, or serve one."""

import argparse
import json
import sys
import urllib.request
import urllib.error
import urllib.parse

from .settings import settings

API_BASE = f"http://{settings.host}:{settings.port}/api"


def _json_out(data):
    print(json.dumps(data))
    sys.exit(0)


def _api_request(method, endpoint, data=None, params=None, raw=False):
    """Make a request to the roll-up tree backend."""
    url = f"{API_BASE}{endpoint}"

    if params:
        filtered = {k: v for k, v in params.items() if v is not None}
        if filtered:
            url = f"{url}?{urllib.parse.urlencode(filtered)}"

    headers = {"Content-Type": "application/json"}
    body = json.dumps(data).encode() if data is not None else None

    req = urllib.request.Request(url, data=body, headers=headers, method=method)

    try:
        with urllib.request.urlopen(req, timeout=30) as response:
            payload = response.read().decode()
            return payload if raw else json.loads(payload)
    except urllib.error.HTTPError as e:
        error_body = e.read().decode()
        try:
            error_data = json.loads(error_body)
            _json_out({"status": "error", "error": f"API error: {error_data.get('detail', 'Unknown error')}"})
        except json.JSONDecodeError:
            _json_out({"status": "error", "error": f"API error ({e.code}): {error_body}"})
    except urllib.error.URLError as e:
        _json_out({"status": "error", "error": f"Connection failed: {e.reason}. Is the backend running?"})


def _read_json_file(path):
    try:
        with open(path) as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        _json_out({"status": "error", "error": f"Cannot read {path}: {e}"})


# ── Server ───────────────────────────────────────────────────────────────────

def cmd_serve(args):
    from .main import run
    run(host=args.host, port=args.port)


# ── Tree ─────────────────────────────────────────────────────────────────────

def cmd_get(args):
    _json_out(_api_request("GET", "/tree"))


def cmd_visible(args):
    _json_out(_api_request("GET", "/tree/visible"))


def cmd_summary(args):
    _json_out(_api_request("GET", "/tree/summary"))


def cmd_load(args):
    _json_out(_api_request("POST", "/tree", data=_read_json_file(args.file_path)))


def cmd_validate(args):
    from rollup_core import validate_input_tree
    from rollup_core.validation import validation_summary

    issues = validate_input_tree(_read_json_file(args.file_path))
    _json_out({
        "success": True,
        "issues": [issue.to_dict() for issue in issues],
        "summary": validation_summary(issues)
    })


def cmd_expand_all(args):
    _json_out(_api_request("POST", "/tree/expand-all"))


def cmd_collapse_all(args):
    _json_out(_api_request("POST", "/tree/collapse-all"))


# ── Nodes ────────────────────────────────────────────────────────────────────

def cmd_set_state(args):
    _json_out(_api_request("POST", f"/nodes/{args.node_id}/state", data={"state": args.state}))


def cmd_toggle(args):
    _json_out(_api_request("POST", f"/nodes/{args.node_id}/toggle"))


# ── Scene ────────────────────────────────────────────────────────────────────

def cmd_scene(args):
    if args.svg:
        print(_api_request("GET", "/scene.svg", raw=True))
        sys.exit(0)
    _json_out(_api_request("GET", "/scene"))


# ── Main ─────────────────────────────────────────────────────────────────────

def build_parser():
    parser = argparse.ArgumentParser(description="Roll-up tree CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    # Server
    p = sub.add_parser("serve")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)

    # Tree
    sub.add_parser("get")
    sub.add_parser("visible")
    sub.add_parser("summary")

    p = sub.add_parser("load")
    p.add_argument("file_path")

    p = sub.add_parser("validate")
    p.add_argument("file_path")

    sub.add_parser("expand-all")
    sub.add_parser("collapse-all")

    # Nodes
    p = sub.add_parser("set-state")
    p.add_argument("--node-id", required=True)
    p.add_argument("--state", required=True, choices=["included", "inverted", "excluded"])

    p = sub.add_parser("toggle")
    p.add_argument("--node-id", required=True)

    # Scene
    p = sub.add_parser("scene")
    p.add_argument("--svg", action="store_true")

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    cmd_map = {
        "serve": cmd_serve,
        "get": cmd_get,
        "visible": cmd_visible,
        "summary": cmd_summary,
        "load": cmd_load,
        "validate": cmd_validate,
        "expand-all": cmd_expand_all,
        "collapse-all": cmd_collapse_all,
        "set-state": cmd_set_state,
        "toggle": cmd_toggle,
        "scene": cmd_scene,
    }
    cmd_map[args.command](args)


if __name__ == "__main__":
    main()
