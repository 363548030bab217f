"""
Plate configurator — entry point.

Usage:
    python -m plateconfig serve                      # start web server on :8000
    python -m plateconfig serve --port 3000
    python -m plateconfig serve --store ./plates.json
    python -m plateconfig serve --rules ./rules.json     # override clearances etc.
"""

import logging
import sys


def main():
    args = sys.argv[1:]
    cmd = args[0] if args else "serve"

    if cmd == "serve":
        port = 8000
        host = "127.0.0.1"
        store_path = None
        rules_path = None
        for i, a in enumerate(args):
            if a == "--port" and i + 1 < len(args):
                port = int(args[i + 1])
            elif a == "--host" and i + 1 < len(args):
                host = args[i + 1]
            elif a == "--store" and i + 1 < len(args):
                store_path = args[i + 1]
            elif a == "--rules" and i + 1 < len(args):
                rules_path = args[i + 1]

        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )

        from plateconfig.web.server import main as serve
        serve(host=host, port=port, store_path=store_path, rules_path=rules_path)
    else:
        print(f"Unknown command: {cmd}")
        print("Usage: python -m plateconfig serve [--port PORT] [--host HOST] [--store PATH] [--rules PATH]")
        sys.exit(1)


if __name__ == "__main__":
    main()
