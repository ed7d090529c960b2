# MIT License
#
# Copyright (c) 2024 Review Aggregator Contributors
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""Text-completion boundary used by the semantic reviewer.

The core only needs ``complete(prompt) -> text``. Transport, authentication
and rate limiting belong to whatever sits behind the client.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
import shutil
from collections.abc import Iterable, Sequence
from typing import Protocol, runtime_checkable

from .exceptions import AnalysisFailedError, NotInitializedError

logger = logging.getLogger(__name__)


@runtime_checkable
class CompletionClient(Protocol):
    """Anything that turns a prompt into response text."""

    async def complete(self, prompt: str) -> str: ...


class CommandCompletionClient:
    """Pipes the prompt to an external command and returns its stdout.

    Example:
        client = CommandCompletionClient("claude -p")
        text = await client.complete(prompt)
    """

    def __init__(self, command: str | Sequence[str]):
        if isinstance(command, str):
            self.command = shlex.split(command)
        else:
            self.command = list(command)
        if not self.command:
            raise ValueError("Completion command must not be empty")

    async def complete(self, prompt: str) -> str:
        executable = self.command[0]
        if shutil.which(executable) is None:
            raise NotInitializedError(
                f"Completion command '{executable}' was not found on PATH"
            )

        logger.debug(f"Running completion command {self.command[0]} ({len(prompt)} chars)")
        process = await asyncio.create_subprocess_exec(
            *self.command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate(prompt.encode("utf-8"))

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="ignore").strip()[:200]
            raise AnalysisFailedError(
                f"Completion command exited with status {process.returncode}: {detail}",
                analyzer="semantic",
            )

        text = stdout.decode("utf-8", errors="ignore")
        logger.debug(f"Completion command returned {len(text)} chars")
        return text


class StaticCompletionClient:
    """Returns canned responses in order, repeating the last one.

    Records every prompt it receives in `prompts`.
    """

    def __init__(self, responses: str | Iterable[str]):
        if isinstance(responses, str):
            self.responses = [responses]
        else:
            self.responses = list(responses)
        if not self.responses:
            raise ValueError("At least one response is required")
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        index = min(len(self.prompts) - 1, len(self.responses) - 1)
        return self.responses[index]
