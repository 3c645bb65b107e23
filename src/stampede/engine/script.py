"""k6 script generation."""

from __future__ import annotations

import json

from stampede.domain import HttpMethod, LoadTestConfig
from stampede.errors import ConfigurationError, ScriptGenerationError

MAX_VUS = 1000
REQUEST_TIMEOUT = "30s"
ITERATION_SLEEP_SECONDS = 1
FAILED_RATE_THRESHOLD = "rate<0.1"
P95_DURATION_THRESHOLD = "p(95)<=500"
SUMMARY_TREND_STATS = ("avg", "min", "med", "max", "p(90)", "p(95)", "p(99)")

_SCRIPT_TEMPLATE = """\
import http from 'k6/http';
import {{ sleep }} from 'k6';
import {{ Rate }} from 'k6/metrics';

const failureRate = new Rate('failed_requests');

export const options = {{
  vus: {vus},
  duration: {duration},
  summaryTrendStats: {trend_stats},
  thresholds: {{
    'failed_requests': [{failed_threshold}],
    'http_req_duration': [{duration_threshold}],
  }},
}};

const METHOD = {method};
const TARGET_URL = {target_url};
const HEADERS = {headers};
const PAYLOAD = {payload};

export default function () {{
  try {{
    const response = http.request(METHOD, TARGET_URL, PAYLOAD, {{
      headers: HEADERS,
      timeout: {timeout},
    }});
    failureRate.add(response.status >= 400);
  }} catch (error) {{
    console.error('Request failed:', error);
    failureRate.add(1);
  }}

  sleep({sleep});
}}
"""


def compute_vus(rps: int) -> int:
    """Virtual users for a target rate: twice the rps for in-flight headroom, capped."""
    return min(2 * rps, MAX_VUS)


def _js(value: object) -> str:
    # JSON literals are valid JavaScript and take care of quoting/escaping.
    return json.dumps(value)


def generate_script(config: LoadTestConfig) -> str:
    """
    Build a self-contained k6 script for the given configuration.

    Args:
        config: Test configuration to embed.

    Returns:
        JavaScript source for ``k6 run``.

    Raises:
        ScriptGenerationError: If the configuration is malformed.
    """
    if not getattr(config, "method", None):
        raise ScriptGenerationError("Cannot generate script: HTTP method is missing")
    try:
        config.validate()
    except ConfigurationError as exc:
        raise ScriptGenerationError(f"Cannot generate script: {exc}") from exc

    method = HttpMethod(str(config.method).upper())
    return _SCRIPT_TEMPLATE.format(
        vus=compute_vus(config.rps),
        duration=_js(config.duration),
        trend_stats=_js(list(SUMMARY_TREND_STATS)),
        failed_threshold=_js(FAILED_RATE_THRESHOLD),
        duration_threshold=_js(P95_DURATION_THRESHOLD),
        method=_js(method.value),
        target_url=_js(config.target_url),
        headers=_js(dict(config.headers)),
        payload=_js(config.effective_body),
        timeout=_js(REQUEST_TIMEOUT),
        sleep=ITERATION_SLEEP_SECONDS,
    )
