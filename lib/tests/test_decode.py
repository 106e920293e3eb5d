from __future__ import annotations

from dataclasses import dataclass

import httpx
import pytest

from blackbeard_client import (
    DecodeError,
    ErrorResponse,
    InvalidTargetError,
    PaginatedResponse,
    body_to_value,
    decode_into,
    extract_first_paginated,
    extract_paginated,
    is_error_response,
    is_invalid_target_error,
    parse_error,
)
from blackbeard_client.decode import NO_STANDARD_ERROR

PAGE = b'{"total":2,"limit":10,"skip":0,"data":[{"id":1},{"id":2}]}'


@dataclass
class Record:
    id: int


def _response(status: int, content: bytes) -> httpx.Response:
    return httpx.Response(status, content=content, request=httpx.Request("GET", "http://h/records"))


def test_decode_into_requires_a_type() -> None:
    with pytest.raises(InvalidTargetError) as exc:
        decode_into({"id": 1}, Record(id=0))
    assert is_invalid_target_error(exc.value)
    assert isinstance(exc.value, DecodeError)


def test_decode_into_reports_shape_mismatch_as_decode_error() -> None:
    with pytest.raises(DecodeError) as exc:
        decode_into({"id": "not-a-number"}, Record)
    assert not is_invalid_target_error(exc.value)


def test_decode_into_ignores_unknown_fields_and_handles_generics() -> None:
    assert decode_into({"id": 3, "extra": True}, Record) == Record(id=3)
    assert decode_into([{"id": 1}, {"id": 2}], list[Record]) == [Record(1), Record(2)]
    assert decode_into({"a": 1}, dict) == {"a": 1}


def test_body_to_value_parses_json_or_fails() -> None:
    assert body_to_value(_response(200, b'[1, "two"]')) == [1, "two"]
    with pytest.raises(DecodeError):
        body_to_value(_response(200, b"<html>"))


def test_extract_paginated_returns_all_records() -> None:
    assert extract_paginated(_response(200, PAGE), list[Record]) == [Record(1), Record(2)]


def test_extract_first_paginated_returns_first_record() -> None:
    assert extract_first_paginated(_response(200, PAGE), Record) == Record(1)


def test_extract_first_paginated_on_empty_page() -> None:
    with pytest.raises(DecodeError):
        extract_first_paginated(_response(200, b'{"total":0,"data":[]}'), Record)


def test_paginated_shape_defaults_missing_metadata() -> None:
    page = decode_into({"data": [1]}, PaginatedResponse)
    assert (page.total, page.limit, page.skip, page.data) == (0, 0, 0, [1])


def test_redirect_range_counts_as_success() -> None:
    assert extract_paginated(_response(304, PAGE), list[Record]) == [Record(1), Record(2)]


def test_structured_error_is_raised_for_failed_status() -> None:
    resp = _response(404, b'{"name":"X","code":404,"message":"not found","errors":{"id":"unknown"}}')
    with pytest.raises(ErrorResponse) as exc:
        extract_paginated(resp, list[Record])
    err = exc.value
    assert is_error_response(err)
    assert err.code == 404
    assert err.name == "X"
    assert err.errors == {"id": "unknown"}
    assert "not found" in str(err)


def test_unparseable_error_body_yields_fallback() -> None:
    err = parse_error(_response(502, b"Bad Gateway"))
    assert err.name == NO_STANDARD_ERROR
    assert err.code == 502
    assert "parsed error" in err.errors


def test_error_body_with_wrong_shape_yields_fallback() -> None:
    with pytest.raises(ErrorResponse) as exc:
        extract_first_paginated(_response(500, b'["not", "an", "object"]'), Record)
    assert exc.value.name == NO_STANDARD_ERROR
    assert exc.value.code == 500


def test_null_page_metadata_reads_as_zero() -> None:
    page = b'{"total":null,"limit":null,"skip":null,"data":[{"id":1}]}'
    assert extract_paginated(_response(200, page), list[Record]) == [Record(1)]
    empty = _response(200, b'{"total":null,"limit":null,"skip":null,"data":null}')
    assert extract_paginated(empty, list[Record]) == []
