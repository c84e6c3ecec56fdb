"""JSON output for discovery events and results.

Produces the documents printed by the command line tool.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..protocol.codec import ServerInfo


class JsonReporter:
    """Generates JSON documents from discovery events and snapshots."""

    def event(self, event: str, payload: Any) -> dict[str, Any]:
        """Build the document for a single service event.

        Args:
            event: Event name (discovered/lost/error).
            payload: ServerInfo for discovered/lost, exception for error.

        Returns:
            Event dictionary ready for JSON serialization.
        """
        doc: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": event,
        }
        if isinstance(payload, ServerInfo):
            doc["server"] = payload.to_dict()
        else:
            doc["error"] = f"{type(payload).__name__}: {payload}"
        return doc

    def generate(
        self,
        servers: list[ServerInfo],
        duration_ms: int = 0,
        error_count: int = 0,
    ) -> dict[str, Any]:
        """Generate a report of the servers found in a session."""
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "summary": {
                "servers": len(servers),
                "errors": error_count,
                "duration_ms": duration_ms,
            },
            "servers": [server.to_dict() for server in servers],
        }

    def save(self, report: dict[str, Any], path: Path) -> Path:
        """Save report to a JSON file.

        Args:
            report: Report dictionary.
            path: Output file path.

        Returns:
            Path to the saved file.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)

        return path

    def to_json_string(self, report: dict[str, Any], pretty: bool = False) -> str:
        if pretty:
            return json.dumps(report, indent=2, ensure_ascii=False)
        return json.dumps(report, ensure_ascii=False)

    def generate_cli_output(
        self,
        report: dict[str, Any],
        report_path: Optional[str] = None,
    ) -> dict[str, Any]:
        """Wrap a report in the command line output envelope.

        {
            "success": bool,
            "command": "discover",
            "data": { ... },
            "message": str
        }
        """
        summary = report["summary"]
        data: dict[str, Any] = {
            "servers": report["servers"],
            "duration_ms": summary["duration_ms"],
        }
        if report_path:
            data["report_path"] = report_path

        count = summary["servers"]
        message = f"{count} server{'s' if count != 1 else ''} discovered"
        if summary["errors"]:
            message += f" ({summary['errors']} errors)"

        return {
            "success": True,
            "command": "discover",
            "data": data,
            "message": message,
        }


def error_output(message: str, **extra) -> dict[str, Any]:
    """Build the output envelope for a failed command."""
    return {
        "success": False,
        "command": "discover",
        "data": extra or None,
        "message": message,
    }
