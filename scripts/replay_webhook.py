"""Replay one stored webhook notification through the ingestion endpoint.

The original raw payload is re-posted unchanged, so the order-status update
is idempotent and the audit log gains one more row for the replay.
"""

import argparse
import json

import httpx


def replay_once(api_url: str, api_key: str, log_id: str, dry_run: bool) -> int:
    """Fetch one audit log row and re-post its payload (or dry-run)."""

    with httpx.Client(base_url=api_url, timeout=10.0) as client:
        resp = client.get(f"/webhooks/logs/{log_id}", headers={"x-api-key": api_key})
        if resp.status_code == 404:
            print(f"No webhook log with id={log_id}.")
            return 1
        resp.raise_for_status()
        log = resp.json()
        payload = log.get("payload")
        if not isinstance(payload, dict):
            print("Stored payload is not replayable (not a JSON object).")
            return 2

        print(
            f"Matched webhook log id={log['id']} status={log.get('status')} "
            f"order_id={log.get('order_id')}"
        )
        if dry_run:
            print(json.dumps(payload, indent=2))
            print("Dry run only; no replay performed.")
            return 0

        result = client.post("/webhook", json=payload, headers={"x-trace-id": f"replay-{log_id}"})
        result.raise_for_status()
        print(json.dumps(result.json(), indent=2))
        return 0 if result.json().get("success") else 3


def main() -> None:
    """CLI entrypoint for operator replays."""

    parser = argparse.ArgumentParser(description="Replay a stored webhook payload.")
    parser.add_argument("log_id")
    parser.add_argument("--api-url", default="http://localhost:8000")
    parser.add_argument("--api-key", required=True)
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()
    raise SystemExit(replay_once(args.api_url, args.api_key, args.log_id, args.dry_run))


if __name__ == "__main__":
    main()
