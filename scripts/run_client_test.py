#!/usr/bin/env python3
"""API client smoke test for the screening server.

Drives complete screenings through the HTTP API of a live server, acting
as the browser would: open a draft, fill the patient identity, answer
every step with random valid answers (taken from the server's own
catalog), attach images where a step asks for them, submit, then read the
patient back as an admin.  Any HTTP error or unexpected view is flagged.

Requires a registered user (``screening-create-user``) and, for the
read-back, an admin key or admin user.

Usage::

    # One Oroscan and one Medtech run
    uv run python scripts/run_client_test.py --user nurse@clinic.example -n 1

    # Only Medtech, verbose, reproducible
    uv run python scripts/run_client_test.py --user nurse@clinic.example \\
        -p medtech -v --seed 42

    # Also fetch the patient detail back through the admin API
    uv run python scripts/run_client_test.py --user nurse@clinic.example \\
        --admin-key "$ADMIN_API_KEY"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import random
import sys
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

import httpx
from rich.console import Console
from rich.table import Table

PROGRAMS = ["oroscan", "medtech"]

NAMES = ["Asha", "Ravi Kumar", "Meena", "Farah", "Joseph", "Lakshmi"]
HEALTH_ASSISTANTS = ["Ravi", "Meena", "Sunita"]

# 1x1 transparent PNG
PLACEHOLDER_IMAGE = (
    "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0"
    "lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


# ---------------------------------------------------------------------------
# APIClient: thin httpx wrapper with identity headers
# ---------------------------------------------------------------------------

class APIClient:
    """Async HTTP client for the screening server API."""

    def __init__(self, base_url: str, user: str, timeout: float = 30.0,
                 admin_key: str | None = None):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._user = user
        self._admin_key = admin_key
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> APIClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()

    @property
    def has_admin_key(self) -> bool:
        return self._admin_key is not None

    async def health_check(self) -> bool:
        """Check server health. Returns True if server and database respond."""
        try:
            resp = await self._client.get("/health")  # type: ignore[union-attr]
            return resp.status_code == 200 and resp.json().get("status") == "ok"
        except (httpx.ConnectError, httpx.TimeoutException):
            return False

    async def start(self, draft_id: str, program: str) -> dict:
        return await self._request(
            "POST", "/api/v1/flows",
            json={"draft_id": draft_id, "screening_type": program},
        )

    async def act(self, draft_id: str, action: dict) -> dict:
        return await self._request(
            "POST", f"/api/v1/flows/{draft_id}/actions", json=action,
        )

    async def submit(self, draft_id: str) -> dict:
        return await self._request("POST", f"/api/v1/flows/{draft_id}/submit")

    async def admin_patient(self, patient_id: str) -> dict:
        return await self._request(
            "GET", f"/api/v1/admin/patients/{patient_id}", admin=True,
        )

    async def _request(
        self, method: str, path: str, json: Any = None, admin: bool = False,
    ) -> dict:
        """Send with the identity header, retry once on timeout."""
        headers = {"X-User-ID": self._user}
        if admin and self._admin_key:
            headers = {"X-Admin-Key": self._admin_key}
        try:
            resp = await self._client.request(  # type: ignore[union-attr]
                method, path, headers=headers, json=json,
            )
        except httpx.TimeoutException:
            resp = await self._client.request(  # type: ignore[union-attr]
                method, path, headers=headers, json=json,
            )
        resp.raise_for_status()
        return resp.json()


# ---------------------------------------------------------------------------
# AnswerGenerator: random valid answers per question type
# ---------------------------------------------------------------------------

class AnswerGenerator:

    def __init__(self, rng: random.Random, skip_optional: float = 0.2):
        self._rng = rng
        self._skip_optional = skip_optional

    def identity(self) -> dict[str, str]:
        return {
            "action": "update_identity",
            "name": self._rng.choice(NAMES),
            "age": str(self._rng.randint(18, 85)),
            "gender": self._rng.choice(["male", "female"]),
            "phone": "9" + "".join(str(self._rng.randint(0, 9)) for _ in range(9)),
            "health_assistant": self._rng.choice(HEALTH_ASSISTANTS),
        }

    def answer(self, question: dict) -> dict | None:
        """Answer action for *question*, or None to leave an optional one blank."""
        if question["optional"] and self._rng.random() < self._skip_optional:
            return None

        if question["question_type"] == "number":
            # Stay inside any sensible catalog range
            value = str(self._rng.randint(40, 180))
        else:
            value = self._rng.choice(question["options"])["id"]

        action = {"action": "answer", "question_id": question["qid"], "answer": value}
        if question["accepts_duration"] and value == "yes" and question["duration_options"]:
            action["duration"] = self._rng.choice(question["duration_options"])["id"]
        return action


# ---------------------------------------------------------------------------
# RunResult: outcome of one screening
# ---------------------------------------------------------------------------

@dataclass
class RunResult:
    program: str
    run_index: int
    status: str = "pending"          # "success", "failed", "incomplete"
    screening_number: str | None = None
    risk: str | None = None
    answers: int = 0
    images: int = 0
    error: str | None = None
    steps: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# RichPrinter: verbosity-aware console output
# ---------------------------------------------------------------------------

class RichPrinter:

    def __init__(self, verbosity: int = 0):
        self.console = Console()
        self.verbosity = verbosity

    def run_header(self, index: int, total: int, program: str, run: int) -> None:
        self.console.print(f"\n[bold cyan][{index}/{total}][/] {program} (run {run})")

    def step_ok(self, step: dict, detail: str) -> None:
        self.console.print(
            f"  [green]✓[/] {step['step_index']}/{step['total_steps']} "
            f"{step['title']}: {detail}"
        )

    def answer(self, action: dict) -> None:
        if self.verbosity < 1:
            return
        duration = f" ({action['duration']})" if "duration" in action else ""
        self.console.print(
            f"    [dim]{action['question_id']}:[/] {action['answer']}{duration}"
        )

    def json_payload(self, label: str, data: Any) -> None:
        if self.verbosity < 2:
            return
        formatted = json.dumps(data, ensure_ascii=False, indent=2)
        self.console.print(f"    [dim]{label}:[/]")
        self.console.print(f"    {formatted}")

    def result_line(self, result: RunResult) -> None:
        if result.status == "success":
            self.console.print(
                f"  → Screening {result.screening_number} "
                f"risk={result.risk or '-'} [green]OK[/]"
            )
        else:
            self.console.print(
                f"  → [red]{result.status.upper()}[/]: {result.error}"
            )

    def error(self, msg: str) -> None:
        self.console.print(f"  [red]ERROR[/] {msg}")


# ---------------------------------------------------------------------------
# ScreeningRunner: drives one screening start-to-finish
# ---------------------------------------------------------------------------

class ScreeningRunner:

    def __init__(
        self,
        client: APIClient,
        answer_gen: AnswerGenerator,
        printer: RichPrinter,
        max_steps: int = 20,
        images: int = 1,
    ):
        self._client = client
        self._answer_gen = answer_gen
        self._printer = printer
        self._max_steps = max_steps
        self._images = images

    async def run(self, program: str, run_index: int) -> RunResult:
        result = RunResult(program=program, run_index=run_index)
        draft_id = f"smoke_{uuid.uuid4().hex[:12]}"

        try:
            view = await self._client.start(draft_id, program)
            view = await self._client.act(draft_id, self._answer_gen.identity())
            view = await self._advance(draft_id, view, result)

            for _ in range(self._max_steps):
                if view["questions"]:
                    view = await self._answer_step(draft_id, view, result)
                if view["image_category"]:
                    view = await self._attach_images(draft_id, view, result)
                if view["can_submit"]:
                    break
                view = await self._advance(draft_id, view, result)
            else:
                result.status = "incomplete"
                result.error = f"Exceeded {self._max_steps} steps"
                return result

            view = await self._client.submit(draft_id)
            self._printer.json_payload("Submit", view)
            if view["step"] != "success":
                result.status = "failed"
                result.error = view["error"] or f"Still on {view['step']}"
                return result

            result.status = "success"
            result.screening_number = view["result"]["screening_number"]
            await self._read_back(view["result"]["patient_id"], result)
            return result

        except httpx.HTTPStatusError as exc:
            result.status = "failed"
            result.error = f"HTTP {exc.response.status_code}: {exc.response.text}"
            self._printer.error(result.error)
            return result

        except httpx.TimeoutException:
            result.status = "failed"
            result.error = "Request timed out (after retry)"
            self._printer.error(result.error)
            return result

    async def _advance(self, draft_id: str, view: dict, result: RunResult) -> dict:
        before = view["step"]
        view = await self._client.act(draft_id, {"action": "next"})
        if view["step"] == before:
            raise RuntimeError(f"Refused to leave {before}: missing={view['missing']}")
        result.steps.append(view["step"])
        return view

    async def _answer_step(self, draft_id: str, view: dict, result: RunResult) -> dict:
        answered = 0
        for question in view["questions"]:
            action = self._answer_gen.answer(question)
            if action is None:
                continue
            self._printer.answer(action)
            view = await self._client.act(draft_id, action)
            answered += 1
        result.answers += answered
        self._printer.step_ok(view, f"{answered}/{len(view['questions'])} answered")
        return view

    async def _attach_images(self, draft_id: str, view: dict, result: RunResult) -> dict:
        for _ in range(self._images):
            view = await self._client.act(
                draft_id, {"action": "attach_image", "data": PLACEHOLDER_IMAGE},
            )
        result.images += self._images
        self._printer.step_ok(view, f"{len(view['images'])} image(s)")
        return view

    async def _read_back(self, patient_id: str, result: RunResult) -> None:
        if not self._client.has_admin_key:
            return
        detail = await self._client.admin_patient(patient_id)
        self._printer.json_payload("Patient", detail)
        result.risk = detail["assessment"]["risk"]
        stored = len(detail["patient"]["responses"])
        if stored != result.answers:
            result.status = "failed"
            result.error = f"Stored {stored} responses, sent {result.answers}"


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

def print_summary(console: Console, results: list[RunResult]) -> None:
    console.print("\n")
    console.rule("[bold]Screening Summary")
    passed = sum(1 for r in results if r.status == "success")
    console.print(f"  Total:   {len(results)}")
    console.print(f"  [green]Passed:[/]  {passed}")
    console.print(f"  [red]Failed:[/]  {len(results) - passed}")
    console.print()

    table = Table(title="Results", show_lines=True)
    table.add_column("#", style="dim", width=4)
    table.add_column("Program", width=10)
    table.add_column("Run", width=4)
    table.add_column("Status", width=8)
    table.add_column("Number", width=8)
    table.add_column("Answers", width=8)
    table.add_column("Images", width=7)
    table.add_column("Risk", width=8)

    for i, r in enumerate(results, 1):
        status_str = "[green]OK[/]" if r.status == "success" else "[red]FAIL[/]"
        table.add_row(
            str(i), r.program, str(r.run_index), status_str,
            r.screening_number or "-", str(r.answers), str(r.images), r.risk or "-",
        )
    console.print(table)

    failed = [r for r in results if r.status != "success"]
    if failed:
        console.print()
        console.rule("[red]Failed Runs")
        for r in failed:
            console.print(f"  {r.program} (run {r.run_index}): {r.error}")
    console.print()


# ---------------------------------------------------------------------------
# CLI + async main
# ---------------------------------------------------------------------------

def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="API client smoke test for the screening server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--base-url", default="http://localhost:8080",
        help="Server base URL (default: http://localhost:8080)",
    )
    parser.add_argument(
        "--user", required=True,
        help="E-mail of a registered user, sent as X-User-ID",
    )
    parser.add_argument(
        "--admin-key", default=None,
        help="ADMIN_API_KEY; enables reading submitted patients back",
    )
    parser.add_argument(
        "-p", "--program", choices=PROGRAMS, default=None,
        help="Only run one program (default: both)",
    )
    parser.add_argument(
        "-n", "--runs", type=int, default=3,
        help="Number of screenings per program (default: 3)",
    )
    parser.add_argument(
        "--images", type=int, default=1,
        help="Images attached on each image step (default: 1)",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase verbosity (-v for answers, -vv for full JSON)",
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="RNG seed for reproducibility (default: current timestamp)",
    )
    parser.add_argument(
        "--timeout", type=float, default=30.0,
        help="HTTP request timeout in seconds (default: 30)",
    )
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    console = Console()

    seed = args.seed if args.seed is not None else int(time.time())
    rng = random.Random(seed)
    console.print(f"[dim]RNG seed: {seed}[/]")

    programs = [args.program] if args.program else PROGRAMS
    total = len(programs) * args.runs
    printer = RichPrinter(verbosity=args.verbose)
    results: list[RunResult] = []

    async with APIClient(
        args.base_url, args.user, timeout=args.timeout, admin_key=args.admin_key,
    ) as client:
        if not await client.health_check():
            console.print(
                f"[red]Server at {args.base_url} is not healthy. "
                f"Is the server (and its database) running?[/]"
            )
            sys.exit(1)
        console.print(f"[green]Server health check passed[/] ({args.base_url})")

        runner = ScreeningRunner(
            client, AnswerGenerator(rng), printer, images=args.images,
        )
        index = 0
        for program in programs:
            for run_idx in range(1, args.runs + 1):
                index += 1
                printer.run_header(index, total, program, run_idx)
                try:
                    result = await runner.run(program, run_idx)
                except RuntimeError as exc:
                    result = RunResult(
                        program=program, run_index=run_idx,
                        status="failed", error=str(exc),
                    )
                printer.result_line(result)
                results.append(result)

    print_summary(console, results)
    if any(r.status != "success" for r in results):
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
