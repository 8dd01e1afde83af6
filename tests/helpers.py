"""
Shared fakes for tests. No network: the Anthropic client is replaced by a
scripted stand-in that returns canned responses in order.
"""

import copy
import os
import sys
import traceback
from contextlib import contextmanager
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

import httpx

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mini_code.config import Config
from mini_code.model import ModelService
from mini_code.skills import SkillLoader
from mini_code.todo import TodoManager
from mini_code.tools import ToolContext

MODEL = "test-model"
REQUEST = httpx.Request("POST", "https://api.example.test/v1/messages")


# -- Response builders (shaped like SDK objects) --

def text(t: str):
    return SimpleNamespace(type="text", text=t)


def tool_use(id: str, name: str, input: dict):
    return SimpleNamespace(type="tool_use", id=id, name=name, input=input)


def response(stop_reason, *blocks):
    return SimpleNamespace(
        stop_reason=stop_reason,
        content=list(blocks),
        usage=SimpleNamespace(input_tokens=10, output_tokens=5),
    )


class FakeMessages:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def create(self, **kwargs):
        # History keeps growing after the call; snapshot what was sent.
        self.calls.append(copy.deepcopy(kwargs))
        if not self.responses:
            raise AssertionError("Unexpected model call")
        r = self.responses.pop(0)
        if isinstance(r, Exception):
            raise r
        return r


class FakeClient:
    def __init__(self, responses):
        self.messages = FakeMessages(responses)


def status_error(cls, status: int, message: str):
    """An SDK APIStatusError subclass instance, as the client would raise it."""
    return cls(message, response=httpx.Response(status, request=REQUEST), body=None)


def make_model(*responses) -> ModelService:
    return ModelService(FakeClient(responses), MODEL)


def calls(model: ModelService) -> list:
    return model.client.messages.calls


def make_config(workdir, **overrides) -> Config:
    workdir = Path(workdir).resolve()
    fields = dict(model=MODEL, workdir=workdir, skills_dir=workdir / "skills", api_key="test-key")
    fields.update(overrides)
    return Config(**fields)


def make_context(workdir, spawner=None) -> ToolContext:
    return ToolContext(Path(workdir).resolve(), TodoManager(), SkillLoader(), spawner)


def write_skill(root: Path, dirname: str, manifest: str) -> Path:
    skill_dir = Path(root) / dirname
    skill_dir.mkdir(parents=True, exist_ok=True)
    (skill_dir / "SKILL.md").write_text(manifest)
    return skill_dir


@contextmanager
def env(**values):
    """Temporarily set (str) or unset (None) environment variables."""
    with patch.dict(os.environ):
        for key, value in values.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
        yield


def run_tests(tests):
    failed = []
    for test_fn in tests:
        name = test_fn.__name__
        print(f"\n{'='*50}")
        print(f"Running: {name}")
        print('='*50)
        try:
            test_fn()
        except Exception as e:
            print(f"FAILED: {e}")
            traceback.print_exc()
            failed.append(name)

    print(f"\n{'='*50}")
    print(f"Results: {len(tests) - len(failed)}/{len(tests)} passed")
    print('='*50)

    if failed:
        print(f"FAILED: {failed}")
        sys.exit(1)
    print("All tests passed!")
    sys.exit(0)
