import argparse
import asyncio
import json
import sys

import httpx
import uvicorn

from shm_agent.core.config import settings
from shm_agent.core.logging import configure_logging
from shm_agent.services.adapters.base import AdapterError, UpstreamError
from shm_agent.services.adapters.factory import ApiCredentials
from shm_agent.services.lifecycle import LifecycleService


async def show_user(api_host: str, token: str, identifier: dict) -> int:
    service = LifecycleService()
    try:
        user = await service.get_user(ApiCredentials(api_host=api_host, token=token), identifier)
    except UpstreamError as e:
        print(f"[ERR] panel answered {e.status_code}: {json.dumps(e.body, ensure_ascii=False)}", file=sys.stderr)
        return 1
    except (AdapterError, httpx.HTTPError) as e:
        print(f"[ERR] {e}", file=sys.stderr)
        return 1
    print(json.dumps(user, indent=2, ensure_ascii=False))
    return 0


def main():
    parser = argparse.ArgumentParser(prog="shm-agent")
    sub = parser.add_subparsers(dest="cmd")

    s = sub.add_parser("serve")
    s.add_argument("--host", default=settings.HOST)
    s.add_argument("--port", type=int, default=settings.PORT)

    g = sub.add_parser("get-user")
    g.add_argument("--api-host", required=True)
    g.add_argument("--token", required=True)
    who = g.add_mutually_exclusive_group(required=True)
    who.add_argument("--uuid")
    who.add_argument("--username")
    who.add_argument("--short-uuid", dest="short_uuid")

    args = parser.parse_args()
    if args.cmd == "serve":
        configure_logging()
        uvicorn.run("shm_agent.main:app", host=args.host, port=args.port, log_config=None)
    elif args.cmd == "get-user":
        identifier = {"uuid": args.uuid, "username": args.username, "shortUuid": args.short_uuid}
        raise SystemExit(asyncio.run(show_user(args.api_host, args.token, {k: v for k, v in identifier.items() if v})))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
