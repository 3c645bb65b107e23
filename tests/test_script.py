from __future__ import annotations

import pytest

from stampede.domain import HttpMethod, LoadTestConfig
from stampede.engine import MAX_VUS, compute_vus, generate_script
from stampede.errors import ConfigurationError, ScriptGenerationError


@pytest.mark.parametrize(
    ("rps", "expected"),
    [(1, 2), (10, 20), (499, 998), (500, 1000), (900, 1000), (10_000, MAX_VUS)],
)
def test_compute_vus_doubles_rps_and_caps(rps: int, expected: int) -> None:
    assert compute_vus(rps) == expected


def test_script_embeds_load_profile_and_thresholds(sample_config: LoadTestConfig) -> None:
    script = generate_script(sample_config)

    assert "import http from 'k6/http';" in script
    assert "vus: 20," in script
    assert 'duration: "10s",' in script
    assert "new Rate('failed_requests')" in script
    assert "'failed_requests': [\"rate<0.1\"]" in script
    assert "'http_req_duration': [\"p(95)<=500\"]" in script
    assert '"p(99)"' in script
    assert 'const METHOD = "GET";' in script
    assert 'const TARGET_URL = "https://example.test/api";' in script
    assert 'timeout: "30s"' in script
    assert "failureRate.add(response.status >= 400);" in script
    assert "failureRate.add(1);" in script
    assert "sleep(1);" in script


def test_script_caps_virtual_users() -> None:
    config = LoadTestConfig(
        target_url="http://svc.local", method=HttpMethod.GET, rps=900, duration="5s"
    )

    assert "vus: 1000," in generate_script(config)


def test_script_sends_body_only_for_post_and_put() -> None:
    post = LoadTestConfig(
        target_url="http://svc.local/items",
        method=HttpMethod.POST,
        rps=2,
        headers={"Content-Type": "application/json"},
        body='{"name": "widget"}',
    )
    get = LoadTestConfig(
        target_url="http://svc.local/items",
        method=HttpMethod.GET,
        rps=2,
        body='{"name": "widget"}',
    )

    post_script = generate_script(post)
    assert 'const PAYLOAD = "{\\"name\\": \\"widget\\"}";' in post_script
    assert 'const HEADERS = {"Content-Type": "application/json"};' in post_script
    assert "const PAYLOAD = null;" in generate_script(get)


def test_script_escapes_quotes_in_url_and_headers() -> None:
    config = LoadTestConfig(
        target_url="http://svc.local/search?q=it's\"quoted\"",
        method=HttpMethod.DELETE,
        rps=1,
        headers={"X-Note": "line\nbreak"},
    )

    script = generate_script(config)

    assert 'const TARGET_URL = "http://svc.local/search?q=it\'s\\"quoted\\"";' in script
    assert '"X-Note": "line\\nbreak"' in script
    assert 'const METHOD = "DELETE";' in script


def test_script_generation_rejects_missing_method() -> None:
    config = LoadTestConfig(target_url="http://svc.local", method=None, rps=1)  # type: ignore[arg-type]

    with pytest.raises(ScriptGenerationError, match="method"):
        generate_script(config)


def test_script_generation_wraps_validation_errors() -> None:
    config = LoadTestConfig(target_url="http://svc.local", method=HttpMethod.GET, rps=0)

    with pytest.raises(ScriptGenerationError) as exc_info:
        generate_script(config)
    assert isinstance(exc_info.value, ConfigurationError)
    assert isinstance(exc_info.value.__cause__, ConfigurationError)
