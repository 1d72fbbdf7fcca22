"""Command-line interface for Strandly - HTTP client for the server API."""

import logging
import shlex
import sys
from typing import Any

import httpx

from strandly.config import get_config, setup_logging

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  services                                  List salon services
  stylists [service-id]                     List stylists
  products [category]                       List shop products
  posts                                     List blog posts
  availability <stylist> <service> <date>   Open slots (date: YYYY-MM-DD)
  locale <code>                             Switch content language
  help                                      Show this help
  quit                                      Exit"""


class StrandlyCLI:
    """Command-line interface for browsing Strandly content - HTTP client."""

    def __init__(self, client: httpx.Client | None = None) -> None:
        """Initialize the CLI.

        Args:
            client: Optional HTTP client (tests pass one with a mock transport)
        """
        self.config = get_config()
        setup_logging(self.config)
        self.locale = self.config.default_locale
        self.client = client or httpx.Client(
            base_url=self.config.server_url, timeout=30.0
        )
        logger.info("Strandly CLI initialized as HTTP client")

    def run(self) -> None:
        """Run the CLI application."""
        print("\n" + "=" * 60)
        print("STRANDLY - Salon booking & shop")
        print("=" * 60)
        print(f"Server: {self.config.server_url}")
        print(f"Locale: {self.locale}\n")
        print(HELP_TEXT)

        while True:
            try:
                line = input("\nstrandly> ").strip()
                if not line:
                    continue

                if line.lower() in ["quit", "exit", "q"]:
                    print("\nGoodbye!")
                    break

                self.handle(line)

            except KeyboardInterrupt:
                print("\n\nExiting Strandly. Goodbye!")
                break

    def handle(self, line: str) -> None:
        """Dispatch one command line."""
        try:
            command, *args = shlex.split(line)
        except ValueError as e:
            print(f"\n⚠ Could not parse command: {e}")
            return

        command = command.lower()
        if command == "help":
            print(HELP_TEXT)
        elif command == "locale":
            self._set_locale(args)
        elif command == "services":
            self._list("/api/services", self._format_service)
        elif command == "stylists":
            params = {"service": args[0]} if args else None
            self._list("/api/stylists", self._format_stylist, params)
        elif command == "products":
            params = {"category": args[0]} if args else None
            self._list("/api/products", self._format_product, params)
        elif command == "posts":
            self._list("/api/posts", self._format_post)
        elif command == "availability":
            self._availability(args)
        else:
            print(f"\n⚠ Unknown command '{command}'. Type 'help' for commands.")

    def _set_locale(self, args: list[str]) -> None:
        if len(args) != 1:
            print("\nUsage: locale <code>")
            return
        self.locale = args[0]
        print(f"\nLocale set to {self.locale}")

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any | None:
        """GET an API path; prints a friendly message and returns None on failure."""
        try:
            response = self.client.get(
                path,
                params={**(params or {}), "locale": self.locale},
            )
        except httpx.TimeoutException:
            logger.exception("Request timed out")
            print("\n⚠ Request timed out. Please try again.")
            return None
        except httpx.ConnectError:
            logger.exception("Cannot connect to server")
            print(f"\n⚠ Cannot connect to server at {self.config.server_url}")
            print("Make sure the server is running:")
            print("  strandly-server")
            return None

        if response.status_code != 200:
            error_data = (
                response.json()
                if response.headers.get("content-type", "").startswith(
                    "application/json"
                )
                else {}
            )
            error_msg = error_data.get("message", response.text)
            print(f"\n⚠ Server error (status {response.status_code}): {error_msg}")
            return None

        return response.json()

    def _list(self, path: str, formatter, params: dict[str, Any] | None = None) -> None:
        data = self._get(path, params)
        if data is None:
            return

        docs = data.get("docs", [])
        if not docs:
            print("\nNothing found.")
            return
        print()
        for doc in docs:
            print(formatter(doc))

    def _availability(self, args: list[str]) -> None:
        if len(args) != 3:
            print("\nUsage: availability <stylist-slug> <service-id> <YYYY-MM-DD>")
            return

        slug, service, day = args
        data = self._get(
            f"/api/stylists/{slug}/availability", {"service": service, "date": day}
        )
        if data is None:
            return

        slots = data.get("slots", [])
        if not slots:
            print(f"\nNo open slots on {day}.")
            return
        print(f"\nOpen slots on {day}:")
        for slot in slots:
            print(f"  {slot['start'][11:16]} - {slot['end'][11:16]}")

    @staticmethod
    def _format_service(doc: dict) -> str:
        return (
            f"  [{doc['id']}] {doc['name']} - {doc['durationMinutes']} min, "
            f"{doc['price']}"
        )

    @staticmethod
    def _format_stylist(doc: dict) -> str:
        specialties = ", ".join(doc.get("specialties") or [])
        return f"  {doc['name']} ({doc['slug']})" + (
            f" - {specialties}" if specialties else ""
        )

    @staticmethod
    def _format_product(doc: dict) -> str:
        stock = "in stock" if doc.get("stock", 0) > 0 else "sold out"
        return f"  {doc['name']} - {doc['price']} {doc.get('currency', '')} ({stock})"

    @staticmethod
    def _format_post(doc: dict) -> str:
        published = (doc.get("publishedAt") or "")[:10]
        return f"  {published} {doc['title']}"


def main() -> None:
    """Main entry point for the CLI."""
    try:
        get_config()
    except Exception as e:
        print(f"Configuration error: {e}")
        print("\nCheck your .env file, e.g.:")
        print("  SERVER_URL=http://localhost:8080")
        sys.exit(1)

    cli = StrandlyCLI()
    cli.run()


if __name__ == "__main__":
    main()
