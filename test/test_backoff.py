import pydantic
import pytest
from poap_mint_client.backoff import BackoffEngine
from poap_mint_client.errors import RetryBudgetExhausted
from poap_mint_client.models import PollingConfig


def counting_operation(result="done"):
    calls = []

    async def operation():
        calls.append(1)
        return result

    return operation, calls


@pytest.mark.asyncio
async def test_delays_grow_geometrically(sleep):
    """Wait before retry k is initial_delay * factor**k milliseconds."""
    engine = BackoffEngine(
        max_retries=5, initial_delay=100, backoff_factor=2.0, sleep=sleep
    )
    operation, calls = counting_operation()

    for _ in range(3):
        assert await engine.schedule_retry(operation) == "done"

    assert sleep.delays == pytest.approx([0.2, 0.4, 0.8])
    assert engine.retries == 3
    assert engine.delay == pytest.approx(800)
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_retries_and_delay_are_monotonic(sleep):
    engine = BackoffEngine(
        max_retries=10, initial_delay=1000, backoff_factor=1.2, sleep=sleep
    )
    operation, _ = counting_operation()

    previous_delay = engine.delay
    for expected_retries in range(1, 11):
        await engine.schedule_retry(operation)
        assert engine.retries == expected_retries
        assert engine.delay > previous_delay
        previous_delay = engine.delay


@pytest.mark.asyncio
async def test_budget_exhaustion_after_max_retries(sleep):
    engine = BackoffEngine(
        max_retries=3, initial_delay=10, backoff_factor=1.5, sleep=sleep
    )
    operation, calls = counting_operation()

    for _ in range(3):
        await engine.schedule_retry(operation)

    with pytest.raises(RetryBudgetExhausted):
        await engine.schedule_retry(operation)

    assert len(calls) == 3
    assert len(sleep.delays) == 3
    assert engine.retries == 3


@pytest.mark.asyncio
async def test_zero_max_retries_fails_without_invoking(sleep):
    engine = BackoffEngine(max_retries=0, sleep=sleep)
    operation, calls = counting_operation()

    with pytest.raises(RetryBudgetExhausted, match="Max retries reached"):
        await engine.schedule_retry(operation)

    assert calls == []
    assert sleep.delays == []
    assert engine.delay == 1000


@pytest.mark.asyncio
async def test_operation_failure_propagates(sleep):
    engine = BackoffEngine(max_retries=2, sleep=sleep)

    async def operation():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        await engine.schedule_retry(operation)

    assert engine.retries == 1


@pytest.mark.parametrize(
    "options",
    [
        {"backoff_factor": 1.0},
        {"backoff_factor": 0.5},
        {"max_retries": -1},
        {"initial_delay": 0},
    ],
)
def test_engine_rejects_invalid_values(options):
    with pytest.raises(ValueError):
        BackoffEngine(**options)


def test_from_config_uses_polling_options(sleep):
    config = PollingConfig(max_retries=7, initial_delay=250, backoff_factor=3)
    engine = BackoffEngine.from_config(config, sleep=sleep)

    assert engine.max_retries == 7
    assert engine.delay == 250
    assert engine.backoff_factor == 3
    assert engine.retries == 0
    assert engine.sleep is sleep


def test_polling_config_defaults():
    config = PollingConfig()

    assert config.max_retries == 20
    assert config.initial_delay == 1000
    assert config.backoff_factor == 1.2


@pytest.mark.parametrize(
    "options",
    [{"backoff_factor": 1.0}, {"max_retries": -1}, {"initial_delay": 0}],
)
def test_polling_config_rejects_invalid_values(options):
    with pytest.raises(pydantic.ValidationError):
        PollingConfig(**options)
