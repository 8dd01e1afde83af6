"""Shell and file primitives. Every function returns a string and never raises."""

import subprocess
from pathlib import Path

DANGEROUS_COMMANDS = ["rm -rf /", "sudo", "shutdown", "reboot", "> /dev/"]
BASH_TIMEOUT = 120


def safe_path(workdir: Path, p: str) -> Path:
    path = (workdir / p).resolve()
    if not path.is_relative_to(workdir):
        raise ValueError(f"Path escapes workspace: {p}")
    return path


def run_bash(workdir: Path, command: str) -> str:
    if any(d in command for d in DANGEROUS_COMMANDS):
        return "Error: Dangerous command blocked"
    try:
        r = subprocess.run(command, shell=True, cwd=workdir,
                           capture_output=True, text=True, errors="replace", timeout=BASH_TIMEOUT)
    except subprocess.TimeoutExpired:
        return f"Error: Timeout ({BASH_TIMEOUT}s)"
    except OSError as e:
        return f"Error: {e}"
    return (r.stdout + r.stderr).strip() or "(no output)"


def run_read(workdir: Path, path: str, limit: int = None) -> str:
    try:
        lines = safe_path(workdir, path).read_text(errors="replace").splitlines()
    except (OSError, ValueError) as e:
        return f"Error: {e}"
    if limit and 0 < limit < len(lines):
        lines = lines[:limit] + [f"... ({len(lines) - limit} more lines)"]
    return "\n".join(lines)


def run_write(workdir: Path, path: str, content: str) -> str:
    try:
        fp = safe_path(workdir, path)
        fp.parent.mkdir(parents=True, exist_ok=True)
        fp.write_text(content)
    except (OSError, ValueError) as e:
        return f"Error: {e}"
    return f"Wrote {len(content.encode('utf-8'))} bytes to {path}"


def run_edit(workdir: Path, path: str, old_text: str, new_text: str) -> str:
    try:
        fp = safe_path(workdir, path)
        text = fp.read_text()
        if old_text not in text:
            return f"Error: Text not found in {path}"
        fp.write_text(text.replace(old_text, new_text, 1))
    except (OSError, ValueError) as e:
        return f"Error: {e}"
    return f"Edited {path}"
