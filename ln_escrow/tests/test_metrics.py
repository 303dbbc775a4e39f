from ln_escrow.metrics import generate_latest_text, sample
from ln_escrow.types.context import Request

REQUESTS = "ln_escrow_requests_total"


def test_requests_counted_by_instruction_and_result(ready):
    ok_before = sample(REQUESTS, instruction="create_escrow", result="success")
    failed_before = sample(REQUESTS, instruction="create_escrow", result="failed")

    assert ready.create_escrow().is_success
    assert ready.create_escrow().custom_code == 12

    assert sample(REQUESTS, instruction="create_escrow", result="success") == ok_before + 1
    assert sample(REQUESTS, instruction="create_escrow", result="failed") == failed_before + 1


def test_undecodable_requests_have_their_own_label(executor):
    before = sample(REQUESTS, instruction="undecodable", result="failed")
    executor.execute(Request(accounts=(), data=b"\xff"))
    assert sample(REQUESTS, instruction="undecodable", result="failed") == before + 1


def test_request_duration_is_observed(funded):
    before = sample("ln_escrow_request_seconds_count", instruction="claim")
    funded.claim()
    assert sample("ln_escrow_request_seconds_count", instruction="claim") == before + 1


def test_exposition_lists_metrics(funded):
    text = generate_latest_text().decode()
    assert "ln_escrow_requests_total" in text
    assert "ln_escrow_request_logs_bucket" in text
