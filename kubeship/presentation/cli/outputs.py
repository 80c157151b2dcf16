"""
CI Output Writer

Architectural Intent:
- Serializes an OrchestrationResult for the CI runner that invoked kubeship
- key=value lines to the file named by GITHUB_OUTPUT, heredoc form for multi-line values
- A markdown run summary to the file named by GITHUB_STEP_SUMMARY
- Both are silently skipped when the variables are unset (local runs)
"""

from __future__ import annotations
import os
import uuid
from typing import Optional

from kubeship.application.dtos.orchestration_dtos import OrchestrationResult


def format_outputs(outputs: dict[str, str]) -> str:
    lines = []
    for key, value in outputs.items():
        if "\n" in value:
            delimiter = f"EOF_{uuid.uuid4().hex}"
            lines.append(f"{key}<<{delimiter}\n{value}\n{delimiter}")
        else:
            lines.append(f"{key}={value}")
    return "\n".join(lines) + "\n"


def write_outputs(result: OrchestrationResult, path: Optional[str] = None) -> bool:
    path = path or os.environ.get("GITHUB_OUTPUT")
    if not path:
        return False
    with open(path, "a") as f:
        f.write(format_outputs(result.to_outputs()))
    return True


def render_summary(result: OrchestrationResult, details: dict[str, str]) -> str:
    """Markdown summary of a run. `details` are the run inputs worth echoing (name, image...)."""
    titles = {
        "deploy": ("### Deployment Summary :rocket:", "### Deployment Failed :x:"),
        "rollback": (
            "### Rollback Summary :leftwards_arrow_with_hook:",
            "### Rollback Failed :x:",
        ),
        "health-check": ("### Health Check Summary :stethoscope:", "### Health Check Failed :x:"),
    }
    ok_title, failed_title = titles.get(result.operation, titles["deploy"])
    lines = [ok_title if result.succeeded else failed_title, ""]
    lines.append(f"**Status:** {'✅ Success' if result.succeeded else '❌ Failure'}")
    for label, value in details.items():
        if value:
            lines.append(f"**{label}:** `{value}`")
    lines.append("")

    if result.app_url:
        lines += [f"**Application URL:** {result.app_url}", ""]
        lines += [f"🌐 **[Access your application]({result.app_url})**", ""]
    if result.service_endpoint:
        lines += [f"**Service IP:** `{result.service_endpoint}`", ""]
    if result.health_check_result:
        code = f" (HTTP {result.http_code})" if result.http_code else ""
        lines += [f"**Health Check:** {result.health_check_result}{code}", ""]

    if result.operation == "rollback" and result.previous_image:
        lines += [
            "#### Revision Details",
            f"**Previous Revision:** {result.previous_revision}",
            f"**Previous Image:** `{result.previous_image}`",
            f"**Current Revision:** {result.rollback_revision} (rolled back)",
            f"**Current Image:** `{result.rollback_image}`",
            "",
        ]
    if result.ready_replicas is not None:
        lines += [f"**Ready Replicas:** {result.ready_replicas}/{result.desired_replicas}", ""]

    if not result.succeeded:
        lines += [f"**Reason:** `{result.reason}`", "", result.message, ""]
    return "\n".join(lines) + "\n"


def write_summary(
    result: OrchestrationResult, details: dict[str, str], path: Optional[str] = None
) -> bool:
    path = path or os.environ.get("GITHUB_STEP_SUMMARY")
    if not path:
        return False
    with open(path, "a") as f:
        f.write(render_summary(result, details))
    return True
