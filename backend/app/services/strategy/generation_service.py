"""
Strategy generation with supersession of in-flight streams.

Each user with a live stream holds a generation token. Starting a stream issues
a fresh token, cancels the previous stream's task and tells its consumer it was
superseded. A task only publishes chunks or results while its token is still
current, so a late response from an older request can never overwrite the
newer one. Tokens are unique across users and are released with the stream.
"""

import asyncio
import itertools
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Optional, Tuple

from app.core.logging_config import get_logger
from app.schemas.strategy import InvestmentStrategy, StrategyRequest
from app.services.allocation_service import (
    AllocationSummary,
    check_allocation,
    summarize_allocation,
)
from app.services.strategy.provider import (
    StrategyGenerationError,
    StrategyProvider,
    parse_strategy,
)

logger = get_logger(__name__)

TERMINAL_EVENTS = ("complete", "error", "superseded")


@dataclass
class _ActiveStream:
    token: int
    task: asyncio.Task
    queue: asyncio.Queue


class StrategyGenerationService:
    def __init__(
        self,
        provider: StrategyProvider,
        renormalize: bool = True,
        tolerance: float = 0.5,
    ):
        self._provider = provider
        self._renormalize = renormalize
        self._tolerance = tolerance
        self._counter = itertools.count(1)
        self._tokens: Dict[str, int] = {}
        self._active: Dict[str, _ActiveStream] = {}
        self._latest: Dict[str, dict] = {}

    def finalize(self, strategy: InvestmentStrategy) -> Tuple[InvestmentStrategy, AllocationSummary]:
        summary = summarize_allocation(
            strategy.asset_allocation,
            renormalize=self._renormalize,
            tolerance=self._tolerance,
        )
        return strategy.model_copy(update={"asset_allocation": summary.items}), summary

    def prepare_for_save(self, strategy: InvestmentStrategy) -> Tuple[InvestmentStrategy, AllocationSummary]:
        """Finalize a client-submitted strategy; raises InvalidAllocation if it still cannot sum to 100."""
        strategy, summary = self.finalize(strategy)
        check_allocation(strategy.asset_allocation, self._tolerance)
        return strategy, summary

    async def generate(self, request: StrategyRequest) -> Tuple[InvestmentStrategy, AllocationSummary]:
        """One-shot generation; provider failures propagate to the caller."""
        strategy = await self._provider.generate_strategy(request)
        return self.finalize(strategy)

    def is_current(self, user_id: str, token: int) -> bool:
        return self._tokens.get(user_id) == token

    def latest(self, user_id: str) -> Optional[dict]:
        """Most recent partial or final state of the user's live stream."""
        return self._latest.get(user_id)

    def _supersede(self, user_id: str) -> int:
        self._tokens[user_id] = next(self._counter)
        previous = self._active.pop(user_id, None)
        if previous is not None:
            previous.queue.put_nowait({"type": "superseded"})
            previous.task.cancel()
            logger.info("Superseded strategy stream", extra={"user_id": user_id, "token": previous.token})
        self._latest.pop(user_id, None)
        return self._tokens[user_id]

    async def stream(self, user_id: str, request: StrategyRequest) -> AsyncIterator[dict]:
        """Yield NDJSON-ready events: chunk*, then one of complete / error / superseded."""
        token = self._supersede(user_id)
        queue: asyncio.Queue = asyncio.Queue()
        task = asyncio.create_task(self._run(user_id, token, request, queue))
        active = _ActiveStream(token=token, task=task, queue=queue)
        self._active[user_id] = active

        try:
            while True:
                event = await queue.get()
                yield event
                if event["type"] in TERMINAL_EVENTS:
                    break
        finally:
            if not task.done():
                task.cancel()
            if self._active.get(user_id) is active:
                del self._active[user_id]
                del self._tokens[user_id]
                self._latest.pop(user_id, None)

    async def _run(self, user_id: str, token: int, request: StrategyRequest, queue: asyncio.Queue) -> None:
        text = ""
        try:
            async for fragment in self._provider.stream_strategy(request):
                if not self.is_current(user_id, token):
                    return
                text += fragment
                self._latest[user_id] = {"token": token, "status": "streaming", "text": text}
                queue.put_nowait({"type": "chunk", "text": text})

            strategy, summary = self.finalize(parse_strategy(text))
        except Exception as e:
            if isinstance(e, StrategyGenerationError):
                detail = str(e)
            else:
                logger.exception("Unexpected strategy stream failure", extra={"user_id": user_id})
                detail = "The strategy could not be generated. Please try again."
            if self.is_current(user_id, token):
                # Partial output is discarded on failure
                self._latest.pop(user_id, None)
                queue.put_nowait({"type": "error", "detail": detail})
            return

        if not self.is_current(user_id, token):
            return
        event = {
            "type": "complete",
            "strategy": strategy.model_dump(),
            "allocation": {
                "reported_total": summary.reported_total,
                "renormalized": summary.renormalized,
            },
        }
        self._latest[user_id] = {"token": token, "status": "complete", "strategy": event["strategy"]}
        queue.put_nowait(event)
