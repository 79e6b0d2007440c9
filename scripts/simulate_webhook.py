#!/usr/bin/env python3
"""
Simulate a GitHub workflow_run webhook for local testing.

Usage:
    python scripts/simulate_webhook.py --repo owner/repo --branch main --workflow CI
"""

import argparse
import hashlib
import hmac
import json
import os
import uuid

import httpx


def main():
    parser = argparse.ArgumentParser(description="Simulate GitHub workflow_run webhook")
    parser.add_argument("--url", default="http://localhost:8000/webhook/github")
    parser.add_argument("--repo", required=True, help="Repository (owner/repo)")
    parser.add_argument("--branch", default="main", help="Head branch of the run")
    parser.add_argument("--workflow", default="CI", help="Workflow name")
    parser.add_argument("--conclusion", default="success", help="Run conclusion")
    parser.add_argument("--actor", default="octocat", help="Login of the run's actor")
    parser.add_argument(
        "--secret", default=None, help="Webhook secret (or use GITHUB_WEBHOOK_SECRET env)"
    )
    parser.add_argument(
        "--hash-id", default=None, help="Hash ID (or use GITHUB_WEBHOOK_HASH_ID env)"
    )

    args = parser.parse_args()

    secret = args.secret or os.environ.get("GITHUB_WEBHOOK_SECRET")
    if not secret:
        print("Error: Webhook secret required (--secret or GITHUB_WEBHOOK_SECRET)")
        return 1

    hash_id = args.hash_id or os.environ.get("GITHUB_WEBHOOK_HASH_ID")

    payload = {
        "action": "completed",
        "workflow_run": {
            "name": args.workflow,
            "head_branch": args.branch,
            "event": "push",
            "status": "completed",
            "conclusion": args.conclusion,
            "actor": {"login": args.actor},
            "repository": {"full_name": args.repo},
        },
        "repository": {
            "full_name": args.repo,
        },
    }

    payload_bytes = json.dumps(payload).encode()
    signature = (
        "sha256="
        + hmac.new(
            secret.encode("utf-8"),
            payload_bytes,
            hashlib.sha256,
        ).hexdigest()
    )

    print(f"Sending webhook to {args.url}")
    print(f"Payload: {json.dumps(payload, indent=2)}")

    response = httpx.post(
        args.url,
        content=payload_bytes,
        params={"hash_id": hash_id} if hash_id else None,
        headers={
            "Content-Type": "application/json",
            "X-Hub-Signature-256": signature,
            "X-GitHub-Event": "workflow_run",
            "X-GitHub-Delivery": str(uuid.uuid4()),
        },
    )

    print(f"\nResponse status: {response.status_code}")
    print(f"Response body: {json.dumps(response.json(), indent=2)}")

    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    raise SystemExit(main())
