#!/usr/bin/env python3
"""Manual client check for a running EPDS service.

Posts five reference submissions to ``/api/v1/submit-epds`` as a plain
HTTP client and prints the status code and body of each:

  A. high risk, patient id
  B. high risk, patient identifier (system + value)
  C. high risk, explicit encounter id
  D. low risk, patient id
  E. missing patient information (expects 400)

Usage::

    # Install deps (first time only)
    uv pip install -e ".[scripts]"

    # Against a local server
    uv run python scripts/run_client_test.py --patient-id <PATIENT_UUID>

    # With identifier and encounter scenarios filled in
    uv run python scripts/run_client_test.py --patient-id <PATIENT_UUID> \\
        --identifier-system http://hospital.example/mrn --identifier-value MRN-12345 \\
        --encounter-id <ENCOUNTER_UUID>

    # A single scenario, full bodies
    uv run python scripts/run_client_test.py --patient-id <PATIENT_UUID> -s C -v
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import dataclass
from typing import Any

import httpx
from rich.console import Console
from rich.table import Table

# ---------------------------------------------------------------------------
# Answer sets
# ---------------------------------------------------------------------------

# Total 14, q10 = 1
HIGH_RISK_ANSWERS = dict(q1="3", q2="2", q3="1", q4="2", q5="1", q6="3", q7="1", q8="0", q9="0", q10="1")
# Total 2, q10 = 0
LOW_RISK_ANSWERS = dict(q1="0", q2="0", q3="0", q4="1", q5="0", q6="1", q7="0", q8="0", q9="0", q10="0")


@dataclass(frozen=True)
class Scenario:
    key: str
    description: str
    form: dict[str, str]
    expected_status: int


@dataclass
class ScenarioResult:
    scenario: Scenario
    status_code: int | None
    body: Any

    @property
    def passed(self) -> bool:
        return self.status_code == self.scenario.expected_status


def build_scenarios(args: argparse.Namespace) -> list[Scenario]:
    """Assemble the reference scenarios from command-line ids."""
    identifier_system = args.identifier_system or "http://hospital.example/mrn"
    identifier_value = args.identifier_value or "MRN-12345"
    encounter_id = args.encounter_id or "encounter-placeholder"

    return [
        Scenario("A", "High risk, patient id",
                 {"patientId": args.patient_id, **HIGH_RISK_ANSWERS}, 200),
        Scenario("B", "High risk, patient identifier",
                 {"patientIdentifierSystem": identifier_system,
                  "patientIdentifierValue": identifier_value, **HIGH_RISK_ANSWERS}, 200),
        Scenario("C", "High risk, explicit encounter",
                 {"patientId": args.patient_id, "encounterId": encounter_id, **HIGH_RISK_ANSWERS}, 200),
        Scenario("D", "Low risk, patient id",
                 {"patientId": args.patient_id, **LOW_RISK_ANSWERS}, 200),
        Scenario("E", "Missing patient information",
                 dict(HIGH_RISK_ANSWERS), 400),
    ]


async def run_scenario(client: httpx.AsyncClient, scenario: Scenario) -> ScenarioResult:
    try:
        resp = await client.post("/api/v1/submit-epds", data=scenario.form)
    except httpx.HTTPError as exc:
        return ScenarioResult(scenario, None, str(exc))
    try:
        body = resp.json()
    except ValueError:
        body = resp.text
    return ScenarioResult(scenario, resp.status_code, body)


def print_results(console: Console, results: list[ScenarioResult], verbose: bool) -> None:
    table = Table(title="EPDS submissions", show_lines=True)
    table.add_column("Scenario", style="bold")
    table.add_column("Description")
    table.add_column("Expected", justify="right")
    table.add_column("Status", justify="right")
    table.add_column("Body")

    for result in results:
        status = "-" if result.status_code is None else str(result.status_code)
        colour = "green" if result.passed else "red"
        if verbose:
            body = json.dumps(result.body, indent=2, ensure_ascii=False)
        else:
            body = json.dumps(result.body, ensure_ascii=False)
        table.add_row(
            result.scenario.key,
            result.scenario.description,
            str(result.scenario.expected_status),
            f"[{colour}]{status}[/]",
            body,
        )
    console.print(table)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Post reference EPDS submissions to a running server",
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:8080",
        help="Server base URL (default: http://localhost:8080)",
    )
    parser.add_argument("--patient-id", required=True, help="Existing Patient resource id")
    parser.add_argument("--identifier-system", default=None, help="Patient identifier system (scenario B)")
    parser.add_argument("--identifier-value", default=None, help="Patient identifier value (scenario B)")
    parser.add_argument("--encounter-id", default=None, help="Encounter id to attach (scenario C)")
    parser.add_argument(
        "-s", "--scenario",
        default=None,
        help="Comma-separated scenario keys to run, e.g. 'A,E' (default: all)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Pretty-print response bodies")
    parser.add_argument(
        "--timeout",
        type=float, default=30.0,
        help="HTTP request timeout in seconds (default: 30)",
    )
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    console = Console()

    scenarios = build_scenarios(args)
    if args.scenario:
        wanted = {key.strip().upper() for key in args.scenario.split(",")}
        scenarios = [s for s in scenarios if s.key in wanted]
        if not scenarios:
            console.print(f"[red]No scenarios match[/] '{args.scenario}'")
            sys.exit(1)

    async with httpx.AsyncClient(base_url=args.base_url.rstrip("/"), timeout=args.timeout) as client:
        try:
            health = await client.get("/health")
        except (httpx.ConnectError, httpx.TimeoutException):
            console.print(f"[red]Server at {args.base_url} is not reachable. Is the server running?[/]")
            sys.exit(1)
        console.print(f"[green]Server health:[/] {health.json().get('status')} ({args.base_url})")

        results = [await run_scenario(client, s) for s in scenarios]

    print_results(console, results, args.verbose)

    failed = [r for r in results if not r.passed]
    if failed:
        console.print(f"[red]{len(failed)} scenario(s) returned an unexpected status[/]")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
