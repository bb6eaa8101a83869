"""
Command line entry point for the RxStorage client.

    rxstorage list items --search drill --pages 2
    rxstorage list categories --demo --json
    rxstorage auth import --access-token ... --refresh-token ... --expires-in 3600
    rxstorage auth clear

Tokens are read from and written to the diskcache store under
RXSTORAGE_TOKEN_CACHE_DIR; ``list`` refreshes them as needed.
"""

import argparse
import asyncio
import sys
from typing import Sequence

from rxstorage import __version__
from rxstorage.auth.middleware import AuthenticationMiddleware
from rxstorage.auth.token_storage import DiskTokenStorage
from rxstorage.config import AppConfiguration
from rxstorage.events import EntityKind, EventBus, session_events
from rxstorage.lib import logs, objects
from rxstorage.networking.client import APIClient
from rxstorage.networking.middleware import LoggingMiddleware
from rxstorage.services import get_service
from rxstorage.viewmodels import lists
from rxstorage.viewmodels.paginated_search import PaginatedSearchController

LOG = logs.logger(__file__)

ENTITIES = {
    "items": (EntityKind.ITEM, lists.item_list),
    "categories": (EntityKind.CATEGORY, lists.category_list),
    "locations": (EntityKind.LOCATION, lists.location_list),
    "authors": (EntityKind.AUTHOR, lists.author_list),
    "position-schemas": (EntityKind.POSITION_SCHEMA, lists.position_schema_list),
}

SESSION_EXPIRED_HINT = (
    "Session expired. Sign in again and store the new tokens with "
    "'rxstorage auth import'."
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rxstorage", description="RxStorage inventory client")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command", required=True)

    list_parser = commands.add_parser("list", help="List entities page by page")
    list_parser.add_argument("entity", choices=sorted(ENTITIES))
    list_parser.add_argument("--search", default="", help="Free-text search")
    list_parser.add_argument("--pages", type=int, default=1, help="Pages to load (default 1)")
    list_parser.add_argument("--demo", action="store_true", help="Use built-in demo data")
    list_parser.add_argument("--json", action="store_true", help="Print JSON instead of text")

    auth_parser = commands.add_parser("auth", help="Manage stored tokens")
    auth_commands = auth_parser.add_subparsers(dest="auth_command", required=True)
    import_parser = auth_commands.add_parser("import", help="Store tokens from a sign-in")
    import_parser.add_argument("--access-token", required=True)
    import_parser.add_argument("--refresh-token", required=True)
    import_parser.add_argument("--expires-in", type=float, required=True, help="Seconds")
    auth_commands.add_parser("clear", help="Forget stored tokens")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configuration = AppConfiguration.from_env()
    LOG.debug("main - command:%s api_url:%s", args.command, configuration.api_url)
    if args.command == "auth":
        return _auth(args, configuration)
    return asyncio.run(_list(args, configuration))


def _auth(args: argparse.Namespace, configuration: AppConfiguration) -> int:
    storage = DiskTokenStorage(configuration.token_cache_dir)
    try:
        if args.auth_command == "import":
            expires_at = storage.save_tokens(
                args.access_token, args.refresh_token, args.expires_in
            )
            print(f"Tokens stored; access token expires at {expires_at.isoformat()}")
        else:
            storage.clear_all()
            print("Stored tokens cleared")
    finally:
        storage.close()
    return 0


async def _list(args: argparse.Namespace, configuration: AppConfiguration) -> int:
    kind, factory = ENTITIES[args.entity]
    unsubscribe = session_events.subscribe(lambda: print(SESSION_EXPIRED_HINT, file=sys.stderr))
    storage = client = auth = None
    try:
        if args.demo:
            service = get_service(kind, "demo")
        else:
            storage = DiskTokenStorage(configuration.token_cache_dir)
            auth = AuthenticationMiddleware(storage, configuration)
            client = APIClient(configuration, middlewares=[auth, LoggingMiddleware()])
            service = get_service(kind, "api", client)

        controller = factory(service, event_bus=EventBus())
        try:
            await _load_pages(controller, args.search, args.pages)
        finally:
            controller.close()
    finally:
        unsubscribe()
        if client is not None:
            await client.aclose()
        if auth is not None:
            await auth.aclose()
        if storage is not None:
            storage.close()

    if controller.error is not None:
        print(f"Error: {controller.error}", file=sys.stderr)
        return 1
    _print_entities(controller.items, as_json=args.json)
    return 0


async def _load_pages(controller: PaginatedSearchController, search: str, pages: int) -> None:
    if search.strip():
        await controller.search(search)
    else:
        await controller.load_initial()
    for _ in range(max(pages, 1) - 1):
        if controller.error is not None or not controller.has_next_page:
            return
        await controller.load_more()


def _print_entities(entities: Sequence, as_json: bool) -> None:
    if as_json:
        print(objects.to_json(list(entities), indent=2))
        return
    for entity in entities:
        label = getattr(entity, "title", None) or getattr(entity, "name", "")
        print(f"{entity.id}\t{label}")


if __name__ == "__main__":
    sys.exit(main())
