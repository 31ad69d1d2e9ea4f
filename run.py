#!/usr/bin/env python
"""
开发启动脚本 - serves the correction engine API with uvicorn
使用方法: python run.py   (HOST, PORT and RELOAD come from the environment)
"""
import os
import socket
import sys


def port_is_free(host: str, port: int) -> bool:
    """Whether ``port`` can be bound on ``host`` right now."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        try:
            probe.bind((host, port))
        except OSError:
            return False
    return True


def main() -> int:
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "true").lower() in ("1", "true", "yes")

    if not port_is_free(host, port):
        print(f"❌ {host}:{port} is taken; rerun with PORT={port + 1}")
        return 1

    print(f"🚀 Hebrew Correction Engine on http://{host}:{port}  (docs: /docs, metrics: /metrics)")
    try:
        # Import string so that --reload can re-import the app
        uvicorn.run("correction_engine.main:app", host=host, port=port, reload=reload, log_level="info")
    except KeyboardInterrupt:
        print("\n👋 stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
