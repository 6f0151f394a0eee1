"""Tests for OAuth callback validation."""

import pytest

from spapi_oauth.auth.callback import CallbackParameters, CallbackValidator
from spapi_oauth.auth.errors import (
    ExpiredStateError,
    InvalidStateError,
    MissingParametersError,
    NoSessionError,
)
from spapi_oauth.auth.state import start_flow


@pytest.fixture
def validator(flow_store, clock):
    return CallbackValidator(flow_store, ttl_seconds=1800, clock=clock)


def _query(state, code="ANcode", partner="A3SELLER"):
    return {"state": state, "spapi_oauth_code": code, "selling_partner_id": partner}


@pytest.mark.parametrize(
    "query, missing",
    [
        ({}, ["state", "spapi_oauth_code", "selling_partner_id"]),
        ({"state": "s"}, ["spapi_oauth_code", "selling_partner_id"]),
        ({"spapi_oauth_code": "c"}, ["state", "selling_partner_id"]),
        ({"selling_partner_id": "p", "state": "s"}, ["spapi_oauth_code"]),
        ({"state": "s", "spapi_oauth_code": "c"}, ["selling_partner_id"]),
    ],
)
def test_missing_parameters_in_check_order(query, missing):
    with pytest.raises(MissingParametersError) as exc_info:
        CallbackParameters.from_query(query)

    assert exc_info.value.missing == missing
    assert exc_info.value.tag == "missing"


def test_empty_value_counts_as_present():
    params = CallbackParameters.from_query({"state": "", "spapi_oauth_code": "c", "selling_partner_id": "p"})
    assert params.state == ""


def test_missing_checked_before_session(validator):
    with pytest.raises(MissingParametersError):
        validator.validate({"state": "s"}, flow_id=None)


def test_no_cookie_is_no_session(validator):
    with pytest.raises(NoSessionError):
        validator.validate(_query("s"), flow_id=None)


def test_unknown_flow_is_no_session(validator):
    with pytest.raises(NoSessionError):
        validator.validate(_query("s"), flow_id="never-issued")


def test_state_mismatch(validator, flow_store, clock):
    flow = start_flow(flow_store, clock=clock)

    with pytest.raises(InvalidStateError):
        validator.validate(_query("not-" + flow.state), flow_id=flow.flow_id)


def test_valid_callback(validator, flow_store, clock):
    flow = start_flow(flow_store, clock=clock)
    clock.advance(0.5)

    params = validator.validate(_query(flow.state), flow_id=flow.flow_id)

    assert params == CallbackParameters(state=flow.state, spapi_oauth_code="ANcode", selling_partner_id="A3SELLER")


def test_state_accepted_only_once(validator, flow_store, clock):
    flow = start_flow(flow_store, clock=clock)
    validator.validate(_query(flow.state), flow_id=flow.flow_id)

    with pytest.raises(NoSessionError):
        validator.validate(_query(flow.state), flow_id=flow.flow_id)


@pytest.mark.parametrize("elapsed", [1799, 1800])
def test_within_window(validator, flow_store, clock, elapsed):
    flow = start_flow(flow_store, clock=clock)
    clock.advance(elapsed)

    validator.validate(_query(flow.state), flow_id=flow.flow_id)


def test_expired_after_window(validator, flow_store, clock):
    flow = start_flow(flow_store, clock=clock)
    clock.advance(1801)

    with pytest.raises(ExpiredStateError) as exc_info:
        validator.validate(_query(flow.state), flow_id=flow.flow_id)

    assert exc_info.value.elapsed_seconds == 1801
    assert exc_info.value.ttl_seconds == 1800


def test_state_mismatch_keeps_flow(validator, flow_store, clock):
    flow = start_flow(flow_store, clock=clock)

    with pytest.raises(InvalidStateError):
        validator.validate(_query("forged"), flow_id=flow.flow_id)

    params = validator.validate(_query(flow.state), flow_id=flow.flow_id)
    assert params.state == flow.state
    assert flow_store.get(flow.flow_id) is None
