"""Persistence of suite results."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from ..constants import RESULTS_ROOT, SESSION_MANIFEST_FILENAME
from ..harness.orchestrator import ResultBundle, RunResult


def _safe_name(name: str) -> str:
    return "".join(c if c.isalnum() or c in "-_." else "_" for c in name).strip("_")


class ReportManager:
    """Manages saving suite results to a per-run directory."""

    def __init__(self, results_root: Union[str, Path] = RESULTS_ROOT):
        """Initialize report manager.

        Args:
            results_root: Root directory for results
        """
        self.results_root = Path(results_root)
        self.results_root.mkdir(parents=True, exist_ok=True)

    def create_report_dir(self, name: str) -> Path:
        """Create a new report directory.

        Args:
            name: Report name (will be sanitized)

        Returns:
            Path to a directory that did not exist before
        """
        safe_name = _safe_name(name) or "suite"

        counter = 1
        while True:
            if counter == 1:
                dir_name = safe_name
            else:
                dir_name = f"{safe_name}_{counter}"

            report_dir = self.results_root / dir_name
            if not report_dir.exists():
                report_dir.mkdir(parents=True)
                return report_dir

            counter += 1

    def save_result(
        self,
        report_dir: Path,
        run_result: RunResult,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Path:
        """Save a single test case result.

        The artifact carries the record without its logs; the remote log is
        stored separately under ``remote_log``.

        Args:
            report_dir: Report directory
            run_result: Outcome of one test case
            metadata: Additional metadata stored with the artifact

        Returns:
            Path to saved file
        """
        artifact = run_result.to_dict()
        if metadata:
            artifact["metadata"] = dict(metadata)
        artifact["timestamp"] = datetime.now(timezone.utc).isoformat()

        filename = f"{run_result.case_index:03d}_{_safe_name(run_result.label) or 'case'}.json"
        filepath = report_dir / filename

        with filepath.open("w", encoding="utf-8") as f:
            json.dump(artifact, f, indent=2, ensure_ascii=False, default=str)

        return filepath

    def save_session_manifest(
        self,
        report_dir: Path,
        bundle: ResultBundle,
        name: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Path:
        """Save the suite manifest.

        Args:
            report_dir: Report directory
            bundle: All results of the suite
            name: Suite name
            metadata: Run configuration worth keeping with the results

        Returns:
            Path to manifest file
        """
        manifest = {
            "session_name": name or report_dir.name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "browser": bundle.browser,
            "aborted": bundle.aborted,
            "summary": bundle.summary(),
            "metadata": metadata or {},
            "runs": [
                {
                    "label": result.label,
                    "title": result.title,
                    "status": result.status,
                    "error": result.error,
                    "execution_time_ms": result.execution_time_ms,
                }
                for result in bundle
            ],
        }

        manifest_path = report_dir / SESSION_MANIFEST_FILENAME
        with manifest_path.open("w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=2, ensure_ascii=False, default=str)

        return manifest_path

    def save_bundle(
        self,
        bundle: ResultBundle,
        name: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Path:
        """Create a report directory and write every result plus the manifest.

        Returns:
            Path to the report directory
        """
        report_dir = self.create_report_dir(name)
        for result in bundle:
            self.save_result(report_dir, result)
        self.save_session_manifest(report_dir, bundle, name=name, metadata=metadata)
        return report_dir
