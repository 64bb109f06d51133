from __future__ import annotations

import json


class StubOracle:
    """Returns canned replies in order; an ``Exception`` entry is raised, a callable is called with the prompt."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise AssertionError("oracle called more times than expected")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(prompt)
        return reply


def turn_reply(narrative: str, gkn: dict, *, fenced: bool = False, state_key: str = "updatedGkn") -> str:
    text = json.dumps({"narrative": narrative, state_key: gkn})
    return f"```json\n{text}\n```" if fenced else text


def story_reply(gkn: dict, hook: str = "Dust motes spin in the lamplight.") -> str:
    return json.dumps({"gkn": gkn, "initialHook": hook})
