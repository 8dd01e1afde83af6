"""
Interactive REPL.

Everything here is presentation: the loop knows nothing about terminals and
only emits LoopEvents. A spinner thread animates while a model call is in
flight and stops when the response (or the error) arrives.
"""

import logging
import os
import sys
import threading
import time

from .config import Config
from .errors import ConfigError, LoopError
from .model import ModelService
from .session import Session
from .tools import SKILL_TOOL, TASK_TOOL, TODO_TOOL, safe_truncate

PREVIEW_BYTES = 300


def setup_logging():
    level = logging.DEBUG if os.getenv("MINI_CODE_DEBUG") == "1" else logging.WARNING
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger("mini_code")
    root.handlers = [handler]
    root.setLevel(level)
    root.propagate = False


class Spinner:
    FRAMES = "|/-\\"

    def __init__(self, label: str = "Thinking"):
        self.label = label
        self._stop = threading.Event()
        self._thread = None

    def start(self):
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self):
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join()
        self._thread = None
        sys.stdout.write("\r\033[K")
        sys.stdout.flush()

    def _run(self):
        start = time.time()
        i = 0
        while not self._stop.wait(0.08):
            frame = self.FRAMES[i % len(self.FRAMES)]
            sys.stdout.write(f"\r\033[90m{frame} {self.label}... {time.time() - start:.1f}s\033[0m")
            sys.stdout.flush()
            i += 1


class ConsoleListener:
    """Renders LoopEvents. Subagent events (depth > 0) are indented."""

    def __init__(self):
        self.spinner = Spinner()

    def __call__(self, event):
        indent = "  " * event.depth
        data = event.data
        if event.kind == "model_request":
            self.spinner.start()
        elif event.kind == "model_response":
            self.spinner.stop()
        elif event.kind == "truncated":
            print(f"{indent}\033[33mWarning:\033[0m Response truncated (attempt {data['attempt']}/{data['limit']})")
        elif event.kind == "tool_start":
            name = data["name"]
            if name == TASK_TOOL:
                args = data["input"]
                print(f"\n{indent}\033[35m> Task [{args.get('agent_type', '?')}]\033[0m {args.get('description', 'subtask')}")
            else:
                print(f"\n{indent}\033[34m>\033[0m {name}")
        elif event.kind == "tool_end":
            self._print_output(indent, data["name"], data["output"])
        elif event.kind == "done" and event.depth == 0 and data["text"]:
            print(data["text"])

    def _print_output(self, indent, name, output):
        if output.startswith("Error:"):
            print(f"{indent}\033[31m{safe_truncate(output, PREVIEW_BYTES)}\033[0m")
        elif name == SKILL_TOOL:
            lines = output.splitlines()
            heading = lines[1] if len(lines) > 1 else output
            print(f"{indent}\033[32mSkill loaded:\033[0m {heading}")
        elif name == TODO_TOOL:
            print(f"\033[32m{output}\033[0m")
        elif name == TASK_TOOL:
            print(f"{indent}\033[35m  done\033[0m ({len(output)} chars)")
        else:
            print(f"{indent}  \033[90m{safe_truncate(output, PREVIEW_BYTES)}\033[0m")


def main():
    setup_logging()
    try:
        config = Config.from_env()
        listener = ConsoleListener()
        session = Session(config, ModelService.from_config(config), listener=listener)
    except ConfigError as e:
        print(f"\033[31mConfiguration error:\033[0m {e}", file=sys.stderr)
        sys.exit(1)

    print("=" * 60)
    print(f"Mini Code agent - {config.workdir}")
    print(f"Model: {config.model}")
    skills = session.skills.list_skills()
    print(f"Skills: {', '.join(skills) if skills else 'none (create skills/<name>/SKILL.md)'}")
    print("=" * 60)
    print()

    while True:
        try:
            user_input = input("\033[36mYou: \033[0m").strip()
        except (EOFError, KeyboardInterrupt):
            break
        if not user_input:
            continue
        if user_input.lower() in ("exit", "quit", "q"):
            break
        try:
            session.submit(user_input)
        except LoopError as e:
            listener.spinner.stop()
            print(f"\033[31mError:\033[0m {e}")
        print()


if __name__ == "__main__":
    main()
