"""
Run a single end-to-end business analysis for a sample input and save the
resulting `AnalysisResponse` to a JSON file.

This script calls the configured live backend (Gemini by default). If the
environment is not configured (API key missing), the run fails and the error
is written to `analysis_run_error.log`.

Usage:
    python scripts/run_analysis_example.py                 # analyze the sample text
    python scripts/run_analysis_example.py report.pdf      # analyze a document
"""
import sys
import json
import asyncio
import logging

from intellens.core.config import AppConfig
from intellens.core.types import AnalysisStatus
from intellens.orchestration.analysis_session import AnalysisSession
from intellens.prompts.analysis_prompts import get_locale

OUT_PATH = "analysis_run.json"
ERR_PATH = "analysis_run_error.log"

SAMPLE_TEXT = "NVIDIA (NVDA), latest quarterly results and data-center demand outlook"


async def run(path=None):
    session = AnalysisSession()
    if path:
        await session.select_file(path)
    else:
        session.set_text(SAMPLE_TEXT)
    await session.run()
    return session


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    path = sys.argv[1] if len(sys.argv) > 1 else None
    print("Starting analysis run - this calls the analysis backend and may take a minute.")
    try:
        AppConfig.from_env(strict=True)
        session = asyncio.run(run(path))
    except Exception as e:
        session = None
        error = str(e)
    else:
        error = session.error

    if session is not None and session.status == AnalysisStatus.COMPLETED:
        with open(OUT_PATH, "w", encoding="utf-8") as f:
            json.dump(session.result.to_dict(), f, indent=2, ensure_ascii=False)
        labels = get_locale(session.config.language)["decision_labels"]
        print(f"Decision: {labels[session.result.decision.value]}")
        print(f"Saved run output to {OUT_PATH}")
        return

    print("Run failed:", error)
    with open(ERR_PATH, "w", encoding="utf-8") as ef:
        ef.write(str(error))
    print(f"Wrote error to {ERR_PATH}")
    sys.exit(1)


if __name__ == "__main__":
    main()
