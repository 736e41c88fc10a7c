"""Unit tests for RetryConfig and RetryPolicy."""

from __future__ import annotations

import asyncio

import pytest

from fundly_events.kernel.errors import ConflictError, DomainError, InfrastructureError, NotFoundError
from fundly_events.resilience.retry import RetryConfig, RetryPolicy


# ---------------------------------------------------------------------------
# RetryConfig
# ---------------------------------------------------------------------------


class TestRetryConfig:
    def test_defaults(self) -> None:
        cfg = RetryConfig()
        assert cfg.max_attempts == 3
        assert cfg.base_delay == 0.1
        assert cfg.max_delay == 5.0
        assert cfg.backoff_multiplier == 2.0
        assert cfg.jitter is False

    def test_delay_grows_geometrically(self) -> None:
        cfg = RetryConfig(base_delay=0.1, backoff_multiplier=2.0)
        assert [cfg.delay(n) for n in (1, 2, 3)] == pytest.approx([0.1, 0.2, 0.4])

    def test_delay_capped_at_max(self) -> None:
        cfg = RetryConfig(base_delay=1.0, max_delay=5.0, backoff_multiplier=10.0)
        assert cfg.delay(4) == 5.0

    def test_jitter_stays_within_bounds(self) -> None:
        cfg = RetryConfig(base_delay=1.0, jitter=True)
        for _ in range(50):
            assert 0 <= cfg.delay(1) <= 1.0

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_attempts": 0}, {"base_delay": -1}, {"max_delay": -1}, {"backoff_multiplier": 0.5}],
    )
    def test_rejects_invalid_values(self, kwargs: dict[str, float]) -> None:
        with pytest.raises(ValueError):
            RetryConfig(**kwargs)

    def test_to_policy(self) -> None:
        cfg = RetryConfig(max_attempts=4)
        policy = cfg.to_policy()
        assert policy.max_attempts == 4
        assert policy.config is cfg


# ---------------------------------------------------------------------------
# RetryPolicy
# ---------------------------------------------------------------------------


def make_policy(max_attempts: int = 3, **kwargs: object) -> tuple[RetryPolicy, list[float]]:
    delays: list[float] = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    config = RetryConfig(max_attempts=max_attempts, base_delay=0.1, max_delay=1.0)
    return RetryPolicy(config, sleep=fake_sleep, **kwargs), delays  # type: ignore[arg-type]


class TestRetryPolicy:
    def test_success_first_try(self) -> None:
        async def run() -> None:
            policy, delays = make_policy()

            async def ok() -> str:
                return "done"

            assert await policy.execute_async(ok) == "done"
            assert delays == []

        asyncio.run(run())

    def test_retries_then_succeeds(self) -> None:
        async def run() -> None:
            policy, delays = make_policy(max_attempts=3)
            calls: list[int] = []

            async def flaky() -> str:
                calls.append(1)
                if len(calls) < 3:
                    raise ConnectionError("boom")
                return "ok"

            assert await policy.execute_async(flaky) == "ok"
            assert len(calls) == 3
            assert delays == pytest.approx([0.1, 0.2])

        asyncio.run(run())

    def test_last_error_propagates(self) -> None:
        async def run() -> None:
            policy, delays = make_policy(max_attempts=2)
            calls: list[int] = []

            async def always_fail() -> None:
                calls.append(1)
                raise ValueError(f"attempt {len(calls)}")

            with pytest.raises(ValueError, match="attempt 2"):
                await policy.execute_async(always_fail)
            assert len(delays) == 1

        asyncio.run(run())

    @pytest.mark.parametrize("exc", [DomainError("rule"), NotFoundError("Campaign", "c-1"), ConflictError("dup")])
    def test_domain_errors_not_retried(self, exc: Exception) -> None:
        async def run() -> None:
            policy, _ = make_policy(max_attempts=5)
            calls: list[int] = []

            async def broken() -> None:
                calls.append(1)
                raise exc

            with pytest.raises(DomainError):
                await policy.execute_async(broken)
            assert calls == [1]

        asyncio.run(run())

    def test_infrastructure_errors_are_retried(self) -> None:
        async def run() -> None:
            policy, delays = make_policy(max_attempts=3)

            async def down() -> None:
                raise InfrastructureError("db down")

            with pytest.raises(InfrastructureError):
                await policy.execute_async(down)
            assert len(delays) == 2

        asyncio.run(run())

    def test_retry_on_filter(self) -> None:
        async def run() -> None:
            policy, _ = make_policy(max_attempts=3, retry_on=(ConnectionError,))
            calls: list[int] = []

            async def wrong_kind() -> None:
                calls.append(1)
                raise KeyError("x")

            with pytest.raises(KeyError):
                await policy.execute_async(wrong_kind)
            assert calls == [1]

        asyncio.run(run())
