# src/token_keeper/cli.py

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Sequence

from .adapters.unverified.jwt_decoder import decode_token
from .application.use_cases.keep_fresh import TokenKeeper
from .application.use_cases.sign_in import SignInUseCase
from .domain.exceptions import ConfigurationError
from .domain.value_objects import Credentials
from .env import settings_from_env
from .settings import AuthSettings

logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="token-keeper",
        description="Obtain, inspect and keep alive refresh/access tokens",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default: TOKEN_KEEPER_LOG_LEVEL or WARNING)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def _credentials(p: argparse.ArgumentParser) -> None:
        p.add_argument("--id", default=os.getenv("AUTH_ID"), help="Account id (default: AUTH_ID)")
        p.add_argument(
            "--password",
            default=os.getenv("AUTH_PASSWORD"),
            help="Account password (default: AUTH_PASSWORD)",
        )

    def _keep(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--keep-logged-in",
            action="store_true",
            help="Ask the service for a long-lived session.",
        )

    def _refresh(p: argparse.ArgumentParser, required: bool = False) -> None:
        p.add_argument(
            "--refresh-token",
            default=os.getenv("AUTH_REFRESH_TOKEN"),
            required=required and not os.getenv("AUTH_REFRESH_TOKEN"),
            help="Refresh token (default: AUTH_REFRESH_TOKEN; "
                 "omit to rely on session cookies)",
        )

    p_login = sub.add_parser("login", help="Log in and print a refresh + access token.")
    _credentials(p_login)
    _keep(p_login)

    p_signup = sub.add_parser("signup", help="Create an account and print its tokens.")
    _credentials(p_signup)
    _keep(p_signup)
    p_signup.add_argument(
        "--challenge-response",
        required=True,
        help="Response of the human-verification challenge.",
    )

    p_access = sub.add_parser("access-token", help="Exchange a refresh token for an access token.")
    _refresh(p_access)
    _keep(p_access)

    p_renew = sub.add_parser("renew", help="Renew a refresh token.")
    _refresh(p_renew)
    _keep(p_renew)

    p_decode = sub.add_parser("decode", help="Print the (unverified) payload of a token.")
    p_decode.add_argument("token")

    p_keep = sub.add_parser("keep-alive", help="Keep tokens fresh until interrupted.")
    _refresh(p_keep, required=True)
    _keep(p_keep)
    p_keep.add_argument("--access-token", default=os.getenv("AUTH_ACCESS_TOKEN"))
    p_keep.add_argument(
        "--duration",
        type=float,
        help="Stop after this many seconds (default: run until interrupted).",
    )

    return parser.parse_args(args=argv)


def _require_credentials(args: argparse.Namespace) -> Credentials:
    if not args.id or not args.password:
        raise ConfigurationError("Missing credentials: pass --id/--password or set AUTH_ID/AUTH_PASSWORD")
    return Credentials(id=args.id, password=args.password)


def _emit(record: dict[str, Any]) -> None:
    json.dump(record, sys.stdout, indent=2)
    sys.stdout.write("\n")
    sys.stdout.flush()


async def _keep_alive(settings: AuthSettings, args: argparse.Namespace) -> dict[str, Any]:
    async with settings.create_transport() as api:
        async with TokenKeeper(
            api,
            args.refresh_token,
            args.access_token,
            keep_logged_in=args.keep_logged_in or settings.keep_logged_in,
        ) as keeper:
            keeper.watch_refresh_token(lambda t: _emit({"renewed": "refresh-token", "token": t}))
            keeper.watch_access_token(lambda t: _emit({"renewed": "access-token", "token": t}))

            await keeper.arm(
                refresh_threshold=settings.refresh_threshold,
                access_threshold=settings.access_threshold,
                refresh_check_period=settings.refresh_check_period,
                access_check_period=settings.access_check_period,
            )
            if args.duration is None:
                await asyncio.Event().wait()
            else:
                await asyncio.sleep(args.duration)

            return {
                "refresh-token": keeper.refresh_token,
                "access-token": keeper.access_token,
            }


async def _run(args: argparse.Namespace) -> dict[str, Any]:
    if args.command == "decode":
        payload = decode_token(args.token)
        if payload is None:
            raise ValueError("Token could not be decoded")
        return {
            "type": payload.type,
            "id": payload.id,
            "generation": payload.generation,
            "expires": payload.expires.isoformat() if payload.expires else None,
            "claims": dict(payload.claims),
        }

    settings = settings_from_env()
    keep_logged_in = bool(args.keep_logged_in or settings.keep_logged_in)

    if args.command == "keep-alive":
        return await _keep_alive(settings, args)

    async with settings.create_transport() as api:
        if args.command == "login":
            pair = await SignInUseCase(api).login(_require_credentials(args), keep_logged_in)
            return {"refresh-token": pair.refresh_token, "access-token": pair.access_token}

        if args.command == "signup":
            pair = await SignInUseCase(api).signup(
                _require_credentials(args),
                args.challenge_response,
                keep_logged_in,
            )
            return {"refresh-token": pair.refresh_token, "access-token": pair.access_token}

        if args.command == "access-token":
            token = await api.fetch_access_token(args.refresh_token, keep_logged_in)
            return {"access-token": token}

        if args.command == "renew":
            token = await api.renew_refresh_token(args.refresh_token, keep_logged_in)
            return {"refresh-token": token}

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)

    level = args.log_level or os.getenv("TOKEN_KEEPER_LOG_LEVEL", "WARNING")
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        summary = asyncio.run(_run(args))
        _emit({"ok": True, **summary})
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as exc:  # noqa: BLE001
        _emit({"ok": False, "error": str(exc)})
        raise


if __name__ == "__main__":
    main()
