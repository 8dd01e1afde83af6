"""
Content-block helpers.

History is kept as plain dicts in the shape the Messages API accepts:

    {"role": "user" | "assistant", "content": str | [block, ...]}

Response blocks from the SDK are objects; they are normalized to dicts before
they are appended so history is JSON-serializable and easy to inspect.
"""

import json


def block_to_dict(block):
    """Normalize an SDK content block (or a dict) to a plain dict."""
    if isinstance(block, dict):
        return block
    kind = getattr(block, "type", None)
    if kind == "text":
        return {"type": "text", "text": block.text}
    if kind == "tool_use":
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": dict(block.input or {})}
    if hasattr(block, "model_dump"):
        return block.model_dump(exclude_none=True)
    return {"type": kind or "unknown"}


def normalize_content(content) -> list:
    return [block_to_dict(b) for b in content or []]


def text_block(text: str) -> dict:
    return {"type": "text", "text": text}


def tool_result_block(tool_use_id: str, content: str, is_error: bool = False) -> dict:
    block = {"type": "tool_result", "tool_use_id": tool_use_id, "content": content}
    if is_error:
        block["is_error"] = True
    return block


def user_message(content) -> dict:
    if isinstance(content, str):
        content = [text_block(content)]
    return {"role": "user", "content": content}


def assistant_message(content) -> dict:
    return {"role": "assistant", "content": normalize_content(content)}


def tool_uses(content) -> list:
    """tool_use blocks of a response, in response order."""
    return [b for b in normalize_content(content) if b.get("type") == "tool_use"]


def texts(content) -> list:
    if isinstance(content, str):
        return [content]
    return [b["text"] for b in normalize_content(content) if b.get("type") == "text"]


def first_text(message: dict):
    """First text block of a message, or None."""
    for text in texts(message.get("content")):
        return text
    return None


def block_chars(block) -> int:
    """Characters of text-bearing content in one block."""
    if isinstance(block, str):
        return len(block)
    block = block_to_dict(block)
    kind = block.get("type")
    if kind == "text":
        return len(block.get("text", ""))
    if kind == "tool_use":
        return len(json.dumps(block.get("input", {}), ensure_ascii=False))
    if kind == "tool_result":
        content = block.get("content", "")
        if isinstance(content, list):
            return sum(block_chars(b) for b in content)
        return len(str(content))
    return 0
