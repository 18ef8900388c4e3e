from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Optional

import requests

from lectureplan.config import Settings
from lectureplan.errors import PortalError
from lectureplan.storage import save_payload


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

ENDPOINTS = {
    "lectures": "/lectures",
    "reschedules": "/lectures/reschedules/active",
    "courses": "/courses",
    "rooms": "/rooms",
    "users": "/users",
}

# Reference lists are optional: lecture records already carry display names
OPTIONAL = {"courses", "rooms", "users"}


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


class PortalClient:
    """
    Read-only client for the portal API.

    Only fetches; creating lectures or reschedules stays with the portal,
    which also enforces who may do so.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_settings(cls, settings: Settings) -> "PortalClient":
        return cls(settings.api_url, token=settings.token, timeout=settings.timeout)

    def get_json(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as exc:
            raise PortalError(f"GET {url} failed: {exc}") from exc
        except ValueError as exc:
            raise PortalError(f"GET {url} did not return JSON") from exc

    def fetch_payload(self, verbose: bool = False) -> dict[str, Any]:
        """
        Fetch every collection the scheduler needs and return them as one bundle.

        Optional reference lists that the server does not offer (HTTP error)
        are left empty; lectures and reschedules must succeed.
        """
        payload: dict[str, Any] = {}
        for key, path in ENDPOINTS.items():
            if verbose:
                print(f"FETCH {key}")
            try:
                data = self.get_json(path)
            except PortalError:
                if key not in OPTIONAL:
                    raise
                if verbose:
                    print(f"SKIP  {key} (not available)")
                data = []
            if not isinstance(data, list):
                raise PortalError(f"GET {path} returned {type(data).__name__}, expected a list")
            payload[key] = data
        return payload


def fetch_snapshot(settings: Settings, out: Optional[Path] = None) -> Path:
    """
    Download the current lectures/reschedules and cache them as snapshot.json.
    """
    client = PortalClient.from_settings(settings)

    print(f"Fetching from: {client.base_url}")
    payload = client.fetch_payload(verbose=True)
    print(f"Found {len(payload['lectures'])} lectures, {len(payload['reschedules'])} reschedules")

    path = save_payload(payload, out if out is not None else settings.snapshot_path)
    print("Fetching finished.")
    return path


# ---------------------------------------------------------------------------
# CLI entry
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="lectureplan.client", description="Fetch lectures and reschedules from the portal API")
    p.add_argument("--api-url", type=str, default=None, help="Portal API base URL")
    p.add_argument("--token", type=str, default=None, help="Bearer token")
    p.add_argument("--out", type=Path, default=None, help="Where to write snapshot.json")
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    if args.api_url:
        settings.api_url = args.api_url.rstrip("/")
    if args.token:
        settings.token = args.token
    fetch_snapshot(settings, out=args.out)


if __name__ == "__main__":
    main()
