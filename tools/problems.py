from __future__ import annotations

import argparse
from dataclasses import dataclass
import json
import os
from pathlib import Path
import subprocess
import sys
from typing import Final, TypedDict, cast


class PyrightSummary(TypedDict, total=False):
    errorCount: int
    warningCount: int
    informationCount: int


class PyrightOutput(TypedDict, total=False):
    summary: PyrightSummary


@dataclass(frozen=True, slots=True)
class Check:
    name: str
    command: tuple[str, ...]


ROOT: Final[Path] = Path(__file__).resolve().parents[1]
REPORT_DIR: Final[Path] = ROOT / ".problems"
STRICT: Final[bool] = os.getenv("PROBLEMS_STRICT", "1").strip().lower() not in {
    "0",
    "false",
    "no",
}
CHECKS: Final[tuple[Check, ...]] = (
    Check("ruff_format_check", ("ruff", "format", "--check", ".")),
    Check("ruff_check", ("ruff", "check", ".")),
    Check("mypy", ("mypy",)),
    Check("pyright", ("pyright",)),
    Check("pytest", (sys.executable, "-m", "pytest")),
)


def run(cmd: tuple[str, ...], *, report_name: str) -> tuple[int, str]:
    """Run ``cmd`` from the project root and keep its combined output in .problems/."""
    try:
        p = subprocess.run(
            list(cmd),
            cwd=ROOT,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
        )
    except FileNotFoundError as exc:
        out = f"{cmd[0]} is not installed: {exc}\n"
        rc = 127
    else:
        out = p.stdout or ""
        rc = p.returncode
    (REPORT_DIR / f"{report_name}.txt").write_text(out, encoding="utf-8")
    return rc, out


def pyright_failed() -> bool:
    _rc, out_json_text = run(("pyright", "--outputjson"), report_name="pyright_outputjson")
    try:
        parsed = cast(PyrightOutput, json.loads(out_json_text or "{}"))
    except json.JSONDecodeError as exc:
        (REPORT_DIR / "pyright_summary.txt").write_text(
            f"Failed to parse pyright json: {exc}\n",
            encoding="utf-8",
        )
        return True
    summary = parsed.get("summary", {})
    errors = int(summary.get("errorCount", 0) or 0)
    warnings = int(summary.get("warningCount", 0) or 0)
    infos = int(summary.get("informationCount", 0) or 0)
    (REPORT_DIR / "pyright_summary.txt").write_text(
        f"errors={errors} warnings={warnings} infos={infos}\n",
        encoding="utf-8",
    )
    return bool(errors or warnings)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the openit quality gate.")
    parser.add_argument(
        "--skip",
        action="append",
        default=[],
        choices=[check.name for check in CHECKS],
        help="Skip a check (repeatable).",
    )
    args = parser.parse_args(argv)
    REPORT_DIR.mkdir(parents=True, exist_ok=True)

    overall_failed = False
    sections: list[str] = []
    for check in CHECKS:
        if check.name in args.skip:
            sections.append(f"=== {' '.join(check.command)} === skipped\n")
            continue
        rc, out = run(check.command, report_name=check.name)
        sections.append(f"=== {' '.join(check.command)} ===\n" + out.rstrip() + "\n")
        if rc != 0:
            overall_failed = True

    if STRICT and "pyright" not in args.skip and pyright_failed():
        overall_failed = True

    combined = "\n".join(sections).strip() + "\n"
    (REPORT_DIR / "problems.txt").write_text(combined, encoding="utf-8")

    print(combined)

    return 1 if overall_failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
