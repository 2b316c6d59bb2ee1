from __future__ import annotations

import argparse
import os

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the WordVault API server.")
    parser.add_argument("--host", default=os.getenv("WORD_VAULT_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("WORD_VAULT_PORT", "8000")))
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()
    uvicorn.run("word_vault.app:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
