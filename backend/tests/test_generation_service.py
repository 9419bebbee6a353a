import asyncio
import json

import pytest

from app.services.strategy.generation_service import StrategyGenerationService
from app.services.strategy.provider import StrategyGenerationError
from conftest import STRATEGY_JSON, FakeStrategyProvider


async def _collect(stream):
    return [event async for event in stream]


@pytest.mark.asyncio
async def test_generate_returns_strategy_and_allocation_summary(strategy_request):
    service = StrategyGenerationService(FakeStrategyProvider())

    strategy, summary = await service.generate(strategy_request)

    assert strategy.strategy_title == STRATEGY_JSON["strategy_title"]
    assert summary.reported_total == 100
    assert summary.renormalized is False


@pytest.mark.asyncio
async def test_generate_renormalizes_allocation(strategy_request, strategy):
    skewed = strategy.model_copy(update={
        "asset_allocation": [
            a.model_copy(update={"percentage": p})
            for a, p in zip(strategy.asset_allocation, [90, 60])
        ]
    })
    service = StrategyGenerationService(FakeStrategyProvider(strategy=skewed))

    result, summary = await service.generate(strategy_request)

    assert summary.renormalized is True
    assert summary.reported_total == 150
    assert [a.percentage for a in result.asset_allocation] == [60, 40]


@pytest.mark.asyncio
async def test_generate_propagates_provider_errors(strategy_request):
    service = StrategyGenerationService(FakeStrategyProvider(error=StrategyGenerationError("busy")))

    with pytest.raises(StrategyGenerationError):
        await service.generate(strategy_request)


@pytest.mark.asyncio
async def test_stream_emits_accumulated_chunks_then_complete(strategy_request):
    text = json.dumps(STRATEGY_JSON, ensure_ascii=False)
    service = StrategyGenerationService(FakeStrategyProvider(fragments=[text[:30], text[30:60], text[60:]]))

    events = await _collect(service.stream("user-1", strategy_request))

    assert [e["type"] for e in events] == ["chunk", "chunk", "chunk", "complete"]
    assert events[0]["text"] == text[:30]
    assert events[1]["text"] == text[:60]
    assert events[2]["text"] == text
    assert events[-1]["strategy"]["strategy_title"] == STRATEGY_JSON["strategy_title"]
    assert events[-1]["allocation"] == {"reported_total": 100, "renormalized": False}
    # Per-user state is released once the stream ends
    assert service.latest("user-1") is None


@pytest.mark.asyncio
async def test_stream_with_malformed_output_ends_in_error(strategy_request):
    service = StrategyGenerationService(FakeStrategyProvider(fragments=['{"strategy_title": "x"']))

    events = await _collect(service.stream("user-1", strategy_request))

    assert [e["type"] for e in events] == ["chunk", "error"]
    assert events[-1]["detail"] == "The model returned data in an unexpected format."
    assert service.latest("user-1") is None


@pytest.mark.asyncio
async def test_stream_provider_error_message_is_kept(strategy_request):
    provider = FakeStrategyProvider(error=StrategyGenerationError("The strategy stream was interrupted."))
    service = StrategyGenerationService(provider)

    events = await _collect(service.stream("user-1", strategy_request))

    assert events[-1] == {"type": "error", "detail": "The strategy stream was interrupted."}


@pytest.mark.asyncio
async def test_stream_unexpected_error_is_reported_generically(strategy_request):
    service = StrategyGenerationService(FakeStrategyProvider(error=RuntimeError("socket closed")))

    events = await _collect(service.stream("user-1", strategy_request))

    assert events[-1]["type"] == "error"
    assert "socket" not in events[-1]["detail"]


@pytest.mark.asyncio
async def test_new_stream_supersedes_previous(strategy_request):
    gate = asyncio.Event()
    service = StrategyGenerationService(FakeStrategyProvider(gate=gate))

    first = service.stream("user-1", strategy_request)
    first_chunk = await first.__anext__()
    assert first_chunk["type"] == "chunk"

    second = service.stream("user-1", strategy_request)
    second_chunk = await second.__anext__()
    assert second_chunk["type"] == "chunk"

    # The older consumer is told it lost the race and ends
    assert await _collect(first) == [{"type": "superseded"}]

    latest = service.latest("user-1")
    assert latest["status"] == "streaming"
    assert latest["token"] == 2

    gate.set()
    rest = await _collect(second)

    assert [e["type"] for e in rest] == ["chunk", "complete"]


@pytest.mark.asyncio
async def test_streams_of_different_users_are_independent(strategy_request):
    service = StrategyGenerationService(FakeStrategyProvider())

    first, second = await asyncio.gather(
        _collect(service.stream("user-1", strategy_request)),
        _collect(service.stream("user-2", strategy_request)),
    )

    assert first[-1]["type"] == "complete"
    assert second[-1]["type"] == "complete"


@pytest.mark.asyncio
async def test_abandoned_stream_cancels_generation(strategy_request):
    gate = asyncio.Event()
    service = StrategyGenerationService(FakeStrategyProvider(gate=gate))

    stream = service.stream("user-1", strategy_request)
    await stream.__anext__()
    task = service._active["user-1"].task
    await stream.aclose()
    await asyncio.sleep(0)

    assert task.cancelled() or task.done()
    assert "user-1" not in service._active


@pytest.mark.asyncio
async def test_finished_streams_release_user_state(strategy_request):
    service = StrategyGenerationService(FakeStrategyProvider())

    await asyncio.gather(*(
        _collect(service.stream(f"user-{i}", strategy_request)) for i in range(20)
    ))

    assert service._tokens == {}
    assert service._latest == {}
    assert service._active == {}


@pytest.mark.asyncio
async def test_failed_stream_releases_user_state(strategy_request):
    service = StrategyGenerationService(FakeStrategyProvider(fragments=["not json"]))

    events = await _collect(service.stream("user-1", strategy_request))

    assert events[-1]["type"] == "error"
    assert service.latest("user-1") is None
    assert "user-1" not in service._tokens


@pytest.mark.asyncio
async def test_tokens_are_not_reused_after_release(strategy_request):
    gate = asyncio.Event()
    service = StrategyGenerationService(FakeStrategyProvider(gate=gate))

    first = service.stream("user-1", strategy_request)
    await first.__anext__()
    first_token = service._tokens["user-1"]
    await first.aclose()

    second = service.stream("user-1", strategy_request)
    await second.__anext__()

    assert service._tokens["user-1"] > first_token
    await second.aclose()
