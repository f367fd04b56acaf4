#!/usr/bin/env python3
"""HR Portal Health Check — verify a running deployment is operational.

Checks:
  1. Backend API responds on /api/v1/health (HTTP 200, status "healthy")
  2. Authenticated endpoints reject anonymous requests (HTTP 401)
  3. Optionally, with credentials: login works and dashboard metrics load

Usage:
    python scripts/healthcheck.py                              # http://localhost:8000
    python scripts/healthcheck.py --url https://hr.example.com
    python scripts/healthcheck.py --username admin --password ...
    python scripts/healthcheck.py --json                       # machine-readable output

Exit codes:
    0 = all checks passed
    1 = one or more checks failed
    2 = critical failure (cannot reach target at all)
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional

import httpx

# ══════════════════════════════════════════════════════════════════════
# Check result model
# ══════════════════════════════════════════════════════════════════════


class CheckResult:
    """Single health check result."""

    def __init__(self, name: str, passed: bool, message: str,
                 detail: str = "", severity: str = "error"):
        self.name = name
        self.passed = passed
        self.message = message
        self.detail = detail
        self.severity = severity  # "error", "warning", "info"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "passed": self.passed,
            "message": self.message,
            "detail": self.detail,
            "severity": self.severity,
        }

    def __str__(self) -> str:
        mark = "OK  " if self.passed else ("WARN" if self.severity == "warning" else "FAIL")
        s = f"[{mark}] {self.name}: {self.message}"
        if self.detail:
            s += f"\n       {self.detail}"
        return s


# ══════════════════════════════════════════════════════════════════════
# Health checks
# ══════════════════════════════════════════════════════════════════════

def check_backend_health(client: httpx.Client) -> CheckResult:
    """Check that /api/v1/health responds with status 'healthy'."""
    try:
        resp = client.get("/api/v1/health")
    except httpx.ConnectError as e:
        return CheckResult("Backend API", False, "Cannot connect to backend", str(e))
    except httpx.HTTPError as e:
        return CheckResult(
            "Backend API", False, f"Health check failed: {type(e).__name__}", str(e),
        )

    if resp.status_code != 200:
        return CheckResult("Backend API", False, f"HTTP {resp.status_code} (expected 200)")

    body = resp.json()
    if body.get("status") != "healthy":
        return CheckResult(
            "Backend API", False,
            f"Status: {body.get('status', 'missing')} (expected 'healthy')",
            f"Response: {json.dumps(body)}",
        )
    return CheckResult(
        "Backend API", True,
        f"Healthy (v{body.get('version', 'unknown')}, {body.get('environment', 'unknown')})",
    )


def check_auth_enforced(client: httpx.Client) -> CheckResult:
    """Anonymous calls to a protected endpoint must be refused with 401."""
    try:
        resp = client.get("/api/v1/leave/types")
    except httpx.HTTPError as e:
        return CheckResult("Auth Enforcement", False, "Request failed", str(e))
    if resp.status_code == 401:
        return CheckResult("Auth Enforcement", True, "Protected endpoints require a token")
    return CheckResult(
        "Auth Enforcement", False,
        f"HTTP {resp.status_code} for an anonymous request (expected 401)",
    )


def check_login_and_metrics(
    client: httpx.Client, username: str, password: str,
) -> CheckResult:
    """Log in and load the dashboard metrics (requires manager or above)."""
    try:
        resp = client.post(
            "/api/v1/auth/login", json={"username": username, "password": password},
        )
        if resp.status_code != 200:
            return CheckResult("Login + Metrics", False, f"Login returned HTTP {resp.status_code}")
        token = resp.json()["access_token"]

        resp = client.get(
            "/api/v1/dashboard/metrics", headers={"Authorization": f"Bearer {token}"},
        )
    except httpx.HTTPError as e:
        return CheckResult("Login + Metrics", False, "Request failed", str(e))

    if resp.status_code != 200:
        return CheckResult(
            "Login + Metrics", False, f"Metrics returned HTTP {resp.status_code}",
            severity="warning" if resp.status_code == 403 else "error",
        )
    data = resp.json()["data"]
    if data.get("total_employees", 0) == 0:
        return CheckResult(
            "Login + Metrics", False, "Database appears empty (0 employees)",
            severity="warning",
        )
    return CheckResult(
        "Login + Metrics", True,
        f"{data['total_employees']} employees, {data['pending_requests']} pending leave requests",
    )


def run_healthcheck(
    base_url: str,
    *,
    username: Optional[str] = None,
    password: Optional[str] = None,
    timeout: float = 10.0,
) -> list[CheckResult]:
    with httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout) as client:
        results = [check_backend_health(client)]
        if not results[0].passed:
            return results
        results.append(check_auth_enforced(client))
        if username and password:
            results.append(check_login_and_metrics(client, username, password))
    return results


def main():
    parser = argparse.ArgumentParser(description="HR Portal health check")
    parser.add_argument("--url", default="http://localhost:8000", help="Base URL of the API")
    parser.add_argument("--username", help="Account used for the authenticated check")
    parser.add_argument("--password", help="Password for --username")
    parser.add_argument("--timeout", type=float, default=10.0)
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    args = parser.parse_args()

    results = run_healthcheck(
        args.url, username=args.username, password=args.password, timeout=args.timeout,
    )

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
    else:
        print(f"HR Portal health check: {args.url}")
        for r in results:
            print(r)

    if len(results) == 1 and not results[0].passed:
        sys.exit(2)
    if any(not r.passed and r.severity == "error" for r in results):
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
