"""
Provider call logger - saves each embedding/completion request as a separate
JSON file for debugging.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, List, Optional
import hashlib


class LLMLogger:
    """
    Logger for provider interactions. Each request/response pair is one JSON
    file under `<log_dir>/<component>/`.
    """

    def __init__(self, log_dir: str = "llm_logs"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.component_dirs = {}

    def _get_component_dir(self, component: str) -> Path:
        """Get or create directory for a specific component."""
        if component not in self.component_dirs:
            component_dir = self.log_dir / component
            component_dir.mkdir(exist_ok=True)
            self.component_dirs[component] = component_dir
        return self.component_dirs[component]

    def log_interaction(
        self,
        component: str,
        model: str,
        messages: List[Dict[str, Any]],
        response: Any,
        error: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Log a single provider interaction.

        Args:
            component: "embeddings" or "completion"
            model: Model identifier
            messages: Input sent to the provider, as chat-style messages
            response: Provider response (text, or a summary for embeddings)
            error: Error message if the request failed
            metadata: Additional metadata to log

        Returns:
            Path to the log file
        """
        timestamp = datetime.now()
        timestamp_str = timestamp.strftime("%Y%m%d_%H%M%S_%f")

        # Short content hash keeps names unique within the same microsecond
        content_hash = hashlib.md5(json.dumps(messages).encode()).hexdigest()[:6]

        status = "error" if error else "success"
        filename = f"{timestamp_str}_{status}_{content_hash}.json"
        filepath = self._get_component_dir(component) / filename

        log_data = {
            "timestamp": timestamp.isoformat(),
            "component": component,
            "model": model,
            "status": status,
            "input": {
                "messages": messages,
            },
            "output": {
                "response": response,
                "error": error
            },
            "metadata": metadata or {},
            "stats": {
                "input_message_count": len(messages),
                "input_chars": sum(len(str(msg.get("content", ""))) for msg in messages),
                "output_chars": len(str(response)) if response else 0
            }
        }

        with open(filepath, 'w') as f:
            json.dump(log_data, f, indent=2, default=str)

        return str(filepath)

    def get_recent_logs(self, component: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Most recent log entries for a component, newest first."""
        component_dir = self._get_component_dir(component)

        log_files = sorted(
            component_dir.glob("*.json"),
            key=lambda x: x.name,
            reverse=True
        )[:limit]

        logs = []
        for log_file in log_files:
            try:
                with open(log_file, 'r') as f:
                    log_data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                print(f"Error reading log file {log_file}: {e}")
                continue
            log_data["_filename"] = log_file.name
            logs.append(log_data)

        return logs

    def get_error_logs(self, component: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
        """Most recent error entries, across all components unless one is given."""
        if component:
            component_dirs = [self._get_component_dir(component)]
        else:
            component_dirs = [d for d in self.log_dir.iterdir() if d.is_dir()]

        error_logs = []
        for component_dir in component_dirs:
            for log_file in sorted(component_dir.glob("*_error_*.json"), reverse=True)[:limit]:
                try:
                    with open(log_file, 'r') as f:
                        log_data = json.load(f)
                except (OSError, json.JSONDecodeError) as e:
                    print(f"Error reading log file {log_file}: {e}")
                    continue
                log_data["_filename"] = log_file.name
                log_data["_component"] = component_dir.name
                error_logs.append(log_data)

        error_logs.sort(key=lambda x: x.get("timestamp", ""), reverse=True)
        return error_logs[:limit]

    def clear_logs(self, component: Optional[str] = None, older_than_hours: Optional[int] = None) -> int:
        """
        Delete log files, optionally only those older than `older_than_hours`.
        Returns the number of files deleted.
        """
        if component:
            component_dirs = [self._get_component_dir(component)]
        else:
            component_dirs = [d for d in self.log_dir.iterdir() if d.is_dir()]

        cutoff_time = None
        if older_than_hours:
            cutoff_time = datetime.now().timestamp() - (older_than_hours * 3600)

        deleted_count = 0
        for component_dir in component_dirs:
            for log_file in component_dir.glob("*.json"):
                if cutoff_time is None or log_file.stat().st_mtime < cutoff_time:
                    log_file.unlink()
                    deleted_count += 1

        return deleted_count

    def get_stats(self) -> Dict[str, Any]:
        """Counts of logged interactions, overall and per component."""
        stats = {
            "total_logs": 0,
            "by_component": {},
            "errors": 0,
        }

        for component_dir in self.log_dir.iterdir():
            if component_dir.is_dir():
                log_files = list(component_dir.glob("*.json"))
                error_files = list(component_dir.glob("*_error_*.json"))

                stats["by_component"][component_dir.name] = {
                    "total": len(log_files),
                    "errors": len(error_files),
                    "success": len(log_files) - len(error_files)
                }

                stats["total_logs"] += len(log_files)
                stats["errors"] += len(error_files)

        return stats


# Global logger instances, one per directory
_loggers: Dict[str, LLMLogger] = {}


def get_llm_logger(log_dir: str = "llm_logs") -> LLMLogger:
    """Get the shared logger writing to `log_dir`."""
    if log_dir not in _loggers:
        _loggers[log_dir] = LLMLogger(log_dir)
    return _loggers[log_dir]
