import pytest
from prometheus_client import REGISTRY

from aibooth.core.exceptions import PredictionFailedError, PollTimeoutError
from aibooth.engines.prediction.poller import ResultPoller

PENDING = {"status": "processing"}


def make_poller(predictor, sleep, interval=3.0, timeout=180.0) -> ResultPoller:
    return ResultPoller(
        check_status=predictor.get_status,
        interval_seconds=interval,
        timeout_seconds=timeout,
        sleep=sleep
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("pending_ticks", [0, 1, 4, 59])
async def test_returns_output_after_pending_ticks(pending_ticks, make_predictor, make_sleep):
    # Arrange
    predictor = make_predictor(
        statuses=[PENDING] * pending_ticks + [{"status": "success", "output": ["http://x/final.png"]}]
    )
    sleep = make_sleep()
    poller = make_poller(predictor, sleep)

    # Act
    result = await poller.run("tok1")

    # Assert
    assert result == "http://x/final.png"
    assert len(predictor.status_calls) == pending_ticks + 1
    assert sleep.calls == [3.0] * (pending_ticks + 1)
    assert set(predictor.status_calls) == {"tok1"}


@pytest.mark.asyncio
async def test_waits_before_the_first_status_check(make_predictor):
    events = []
    predictor = make_predictor(statuses=[{"status": "success", "output": "http://x/a.png"}])

    async def sleep(seconds):
        events.append("sleep")

    async def check_status(token):
        events.append("check")
        return await predictor.get_status(token)

    poller = ResultPoller(check_status=check_status, sleep=sleep)

    await poller.run("tok1")

    assert events == ["sleep", "check"]


@pytest.mark.asyncio
async def test_times_out_after_exactly_max_attempts(make_predictor, make_sleep):
    predictor = make_predictor(statuses=[PENDING])
    sleep = make_sleep()
    poller = make_poller(predictor, sleep)

    with pytest.raises(PollTimeoutError) as exc_info:
        await poller.run("tok1")

    assert poller.max_attempts == 60
    assert len(predictor.status_calls) == 60
    assert len(sleep.calls) == 60
    assert exc_info.value.details["attempts"] == 60
    assert exc_info.value.code == 504


@pytest.mark.asyncio
async def test_error_on_first_poll_fails_immediately(make_predictor, make_sleep):
    payload = {"status": "error", "error": "content policy"}
    predictor = make_predictor(statuses=[payload, {"status": "success", "output": ["never"]}])
    sleep = make_sleep()
    poller = make_poller(predictor, sleep)

    with pytest.raises(PredictionFailedError) as exc_info:
        await poller.run("tok1")

    assert len(predictor.status_calls) == 1
    assert exc_info.value.details["payload"] == payload


@pytest.mark.asyncio
async def test_scalar_output_is_returned_as_is(make_predictor, make_sleep):
    predictor = make_predictor(statuses=[{"status": "success", "output": "http://x/single.png"}])
    poller = make_poller(predictor, make_sleep())

    assert await poller.run("tok1") == "http://x/single.png"


@pytest.mark.asyncio
@pytest.mark.parametrize("output", [None, [], "", [{"url": "http://x/final.png"}], 123, {"url": "http://x/final.png"}])
async def test_success_without_string_output_is_a_failure(output, make_predictor, make_sleep):
    predictor = make_predictor(statuses=[{"status": "success", "output": output}])
    poller = make_poller(predictor, make_sleep())

    with pytest.raises(PredictionFailedError):
        await poller.run("tok1")


@pytest.mark.asyncio
async def test_unrecognized_statuses_keep_polling(make_predictor, make_sleep):
    predictor = make_predictor(statuses=[
        {"status": "starting"},
        {"status": "unreachable", "error": "connect timeout"},
        {},
        {"status": "success", "output": ["http://x/final.png"]},
    ])
    poller = make_poller(predictor, make_sleep())

    assert await poller.run("tok1") == "http://x/final.png"
    assert len(predictor.status_calls) == 4


@pytest.mark.parametrize(
    "interval, timeout, expected",
    [(3.0, 180.0, 60), (3.0, 10.0, 4), (0.5, 1.0, 2), (5.0, 1.0, 1)]
)
def test_max_attempts_is_timeout_over_interval_rounded_up(interval, timeout, expected, make_predictor):
    poller = ResultPoller(check_status=make_predictor().get_status, interval_seconds=interval, timeout_seconds=timeout)

    assert poller.max_attempts == expected


@pytest.mark.parametrize("interval, timeout", [(0, 180.0), (3.0, 0), (-1.0, 10.0)])
def test_rejects_non_positive_configuration(interval, timeout, make_predictor):
    with pytest.raises(ValueError):
        ResultPoller(check_status=make_predictor().get_status, interval_seconds=interval, timeout_seconds=timeout)


def poll_count(status: str) -> float:
    return REGISTRY.get_sample_value("prediction_polls_total", {"status": status}) or 0.0


@pytest.mark.asyncio
async def test_poll_metric_labels_stay_bounded(make_predictor, make_sleep):
    predictor = make_predictor(statuses=[
        {"status": "starting"},
        {"status": {"nested": "oops"}},
        {"status": "unreachable"},
        {"status": "success", "output": ["http://x/final.png"]},
    ])
    poller = make_poller(predictor, make_sleep())
    pending, unreachable, success = poll_count("pending"), poll_count("unreachable"), poll_count("success")

    await poller.run("tok1")

    assert poll_count("pending") == pending + 2
    assert poll_count("unreachable") == unreachable + 1
    assert poll_count("success") == success + 1
    assert REGISTRY.get_sample_value("prediction_polls_total", {"status": "starting"}) is None
