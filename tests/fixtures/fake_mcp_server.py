"""
Minimal stdio MCP server used by the connection and manager tests.

Run with ``sys.executable``. Behaviour is chosen with command-line flags:

    --tools a,b           tool names to advertise (default: echo)
    --noise               print a banner, a blank line and a notification
                          before every response
    --stray-response      print a response to an unrelated id before every
                          response
    --fail-initialize     answer initialize with a JSON-RPC error
    --fail-list           answer tools/list with a JSON-RPC error
    --error-tool NAME     tools/call on NAME returns isError
    --rpc-error-tool NAME tools/call on NAME returns a JSON-RPC error
    --flood-on-call N     on tools/call print N notifications and never answer
    --hang-on-call        on tools/call never answer
    --exit-on-call        on tools/call exit without answering
    --hang-on-initialize  never answer initialize
    --pid-file PATH       write the process id to PATH at startup

Every tool echoes its arguments back as JSON text.
"""

import argparse
import json
import os
import sys


def send(message: dict) -> None:
    sys.stdout.write(json.dumps(message) + "\n")
    sys.stdout.flush()


def send_raw(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tools", default="echo")
    parser.add_argument("--noise", action="store_true")
    parser.add_argument("--stray-response", action="store_true")
    parser.add_argument("--fail-initialize", action="store_true")
    parser.add_argument("--fail-list", action="store_true")
    parser.add_argument("--error-tool", default=None)
    parser.add_argument("--rpc-error-tool", default=None)
    parser.add_argument("--flood-on-call", type=int, default=0)
    parser.add_argument("--hang-on-call", action="store_true")
    parser.add_argument("--exit-on-call", action="store_true")
    parser.add_argument("--hang-on-initialize", action="store_true")
    parser.add_argument("--pid-file", default=None)
    return parser.parse_args()


def tool_definitions(names: list[str]) -> list[dict]:
    return [
        {
            "name": name,
            "description": f"Echo tool {name}",
            "inputSchema": {
                "type": "object",
                "properties": {"x": {"type": "integer", "description": "A value", "minimum": 0}},
                "required": ["x"],
            },
        }
        for name in names
    ]


def main() -> int:
    opts = parse_args()
    tool_names = [n for n in opts.tools.split(",") if n]
    if opts.pid_file:
        with open(opts.pid_file, "w", encoding="utf-8") as f:
            f.write(str(os.getpid()))

    for line in sys.stdin:
        line = line.strip()
        if not line:
            continue
        request = json.loads(line)
        if "id" not in request:
            continue

        request_id = request["id"]
        method = request.get("method")
        params = request.get("params") or {}

        if method == "tools/call":
            if opts.exit_on_call:
                return 0
            if opts.hang_on_call:
                continue
            if opts.flood_on_call:
                for i in range(opts.flood_on_call):
                    send({"jsonrpc": "2.0", "method": "notifications/progress", "params": {"n": i}})
                continue

        if opts.noise:
            send_raw("fake server starting up")
            send_raw("")
            send({"jsonrpc": "2.0", "method": "notifications/message", "params": {"level": "info"}})
        if opts.stray_response:
            send({"jsonrpc": "2.0", "id": request_id + 1000, "result": {"stray": True}})

        if method == "initialize":
            if opts.hang_on_initialize:
                continue
            if opts.fail_initialize:
                send(
                    {
                        "jsonrpc": "2.0",
                        "id": request_id,
                        "error": {"code": -32603, "message": "initialize refused"},
                    }
                )
                continue
            send(
                {
                    "jsonrpc": "2.0",
                    "id": request_id,
                    "result": {
                        "protocolVersion": params.get("protocolVersion"),
                        "capabilities": {"tools": {}},
                        "serverInfo": {"name": "fake-mcp", "version": "1.0.0"},
                    },
                }
            )
        elif method == "tools/list":
            if opts.fail_list:
                send(
                    {
                        "jsonrpc": "2.0",
                        "id": request_id,
                        "error": {"code": -32601, "message": "tools/list unavailable"},
                    }
                )
                continue
            tools = tool_definitions(tool_names)
            send({"jsonrpc": "2.0", "id": request_id, "result": {"tools": tools}})
        elif method == "tools/call":
            name = params.get("name")
            arguments = params.get("arguments") or {}
            if name == opts.rpc_error_tool:
                send(
                    {
                        "jsonrpc": "2.0",
                        "id": request_id,
                        "error": {"code": -32602, "message": f"bad arguments for {name}"},
                    }
                )
                continue
            send(
                {
                    "jsonrpc": "2.0",
                    "id": request_id,
                    "result": {
                        "content": [{"type": "text", "text": json.dumps(arguments)}],
                        "isError": name == opts.error_tool,
                    },
                }
            )
        else:
            send(
                {
                    "jsonrpc": "2.0",
                    "id": request_id,
                    "error": {"code": -32601, "message": f"method not found: {method}"},
                }
            )

    return 0


if __name__ == "__main__":
    sys.exit(main())
