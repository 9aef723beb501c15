"""
Acceptance smoke checks for the Nano Banana API.

Usage:
  PYTHONPATH=src python scripts/acceptance_smoke.py
  GEMINI_API_KEY=... PYTHONPATH=src python scripts/acceptance_smoke.py --with-external
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import tempfile
import time
from dataclasses import dataclass
from typing import Callable

from fastapi.testclient import TestClient

# 1x1 transparent PNG
PNG_1X1 = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)


@dataclass
class CheckResult:
    name: str
    passed: bool
    detail: str


def _ok(name: str, detail: str) -> CheckResult:
    return CheckResult(name=name, passed=True, detail=detail)


def _fail(name: str, detail: str) -> CheckResult:
    return CheckResult(name=name, passed=False, detail=detail)


def run_check(name: str, fn: Callable[[], CheckResult]) -> CheckResult:
    try:
        return fn()
    except Exception as exc:  # pragma: no cover - smoke tool
        return _fail(name, f"exception: {exc}")


class StubImageClient:
    """Offline model client: every call returns the same 1x1 PNG."""

    async def generate_variation(self, images, prompt):
        return PNG_1X1

    async def analyze_image(self, image_bytes, mime_type):
        return f"stub description ({mime_type}, {len(image_bytes)} bytes)"


def main() -> int:
    parser = argparse.ArgumentParser(description="Run acceptance smoke checks.")
    parser.add_argument(
        "--with-external",
        action="store_true",
        help="Use the real Gemini client instead of the offline stub.",
    )
    parser.add_argument("--variations", type=int, default=2)
    parser.add_argument("--timeout", type=float, default=120.0)
    args = parser.parse_args()

    os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="nano-banana-smoke-"))

    from nano_banana.core import Settings
    from nano_banana.main import create_app

    settings = Settings()
    model_client = None if args.with_external else StubImageClient()
    if model_client is not None:
        settings = settings.model_copy(update={"variation_delay_seconds": 0})
    app = create_app(settings=settings, model_client=model_client)

    results: list[CheckResult] = []

    with TestClient(app) as client:

        def check_health() -> CheckResult:
            resp = client.get("/api/health")
            if resp.status_code != 200:
                return _fail("GET /api/health", f"status={resp.status_code}, body={resp.text[:200]}")
            return _ok("GET /api/health", json.dumps(resp.json()))

        def check_rejects_short_prompt() -> CheckResult:
            resp = client.post(
                "/api/generate",
                files={"mainPhoto": ("smoke.png", PNG_1X1, "image/png")},
                data={"prompt": "short"},
            )
            if resp.status_code != 400:
                return _fail("POST /api/generate (invalid)", f"status={resp.status_code}")
            return _ok("POST /api/generate (invalid)", resp.json().get("error", ""))

        def check_generate_and_poll() -> CheckResult:
            resp = client.post(
                "/api/generate",
                files={"mainPhoto": ("smoke.png", PNG_1X1, "image/png")},
                data={
                    "prompt": "a small banana on a studio table",
                    "numVariations": str(args.variations),
                    "aspectRatio": "16:9",
                },
            )
            if resp.status_code != 200:
                return _fail("POST /api/generate", f"status={resp.status_code}, body={resp.text[:300]}")
            generation_id = resp.json()["id"]

            deadline = time.monotonic() + args.timeout
            data: dict = {}
            while time.monotonic() < deadline:
                data = client.get(f"/api/generation/{generation_id}").json()
                if data.get("status") == "completed":
                    break
                time.sleep(0.5)
            if data.get("status") != "completed":
                return _fail("POST /api/generate", f"not completed in {args.timeout}s: {data}")

            first = data["generatedImages"][0]
            image = client.get(f"/api/images/{first}")
            if image.status_code != 200:
                return _fail("GET /api/images", f"status={image.status_code}")
            return _ok(
                "POST /api/generate",
                f"id={generation_id}, images={len(data['generatedImages'])}",
            )

        results.append(run_check("GET /api/health", check_health))
        results.append(run_check("POST /api/generate (invalid)", check_rejects_short_prompt))
        results.append(run_check("POST /api/generate", check_generate_and_poll))

    passed = sum(1 for item in results if item.passed)
    failed = len(results) - passed

    print("\nAcceptance Smoke Report")
    print("=" * 24)
    for item in results:
        status = "PASS" if item.passed else "FAIL"
        print(f"[{status}] {item.name}: {item.detail}")

    print("-" * 24)
    print(f"passed={passed}, failed={failed}, total={len(results)}")
    return 0 if failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
